from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from vidvault.api.deps import get_janitor
from vidvault.config.settings import config
from vidvault.core.logging import log_info
from vidvault.models.response import CleanupResponse
from vidvault.services.janitor import Janitor

router = APIRouter()


@router.get("/config")
async def get_config():
    """Get current configuration"""
    return {
        "storage": config.storage.model_dump(),
        "download": config.download.model_dump(),
        "ytdlp": config.ytdlp.model_dump(),
        "i18n": config.i18n.model_dump()
    }


@router.post("/cleanup", response_model=CleanupResponse)
async def run_cleanup(
    request: Request,
    max_age_hours: Optional[float] = Query(None, gt=0, description="Override the configured max age"),
    janitor: Janitor = Depends(get_janitor),
):
    """Run an age-based sweep now"""
    age = max_age_hours if max_age_hours is not None else janitor.max_age_hours
    removed = await janitor.run_once(age)
    log_info(request, f"Manual cleanup removed {removed} file(s)")
    return CleanupResponse(removed=removed, max_age_hours=age)
