from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from vidvault.api.deps import get_download_limiter, get_extractor, get_file_store
from vidvault.config.settings import config
from vidvault.core.state import state
from vidvault.i18n import i18n
from vidvault.infra.concurrency import ConcurrencyLimiter
from vidvault.models.response import HealthResponse
from vidvault.services.extractor import MediaExtractor
from vidvault.services.storage import FileStore

router = APIRouter()


async def _redis_status() -> str:
    if not state.redis:
        return i18n.get("response.redis_disabled")
    try:
        await state.redis.ping()
        return i18n.get("response.redis_connected")
    except (RedisError, OSError):
        return i18n.get("response.redis_disconnected")


async def _probe_extractor(extractor: MediaExtractor) -> bool:
    version = await extractor.version()
    state.ytdlp_available = version is not None
    state.ytdlp_version = version or "unavailable"
    return state.ytdlp_available


@router.get("/")
async def root():
    """Root endpoint"""
    return {
        "status": i18n.get("response.status_running"),
        "service": config.api.title,
        "version": config.api.version,
        "ytdlp_version": state.ytdlp_version,
        "redis_enabled": state.redis is not None
    }


@router.get("/health", response_model=HealthResponse)
async def health_check(extractor: MediaExtractor = Depends(get_extractor)):
    """Health check; 503 when the extractor tool is missing"""
    available = await _probe_extractor(extractor)
    body = HealthResponse(
        status=i18n.get("health.status") if available else i18n.get("health.degraded"),
        ytdlp_available=available,
        ytdlp_version=state.ytdlp_version if available else None,
        redis=await _redis_status(),
    )
    return JSONResponse(status_code=200 if available else 503, content=body.model_dump())


@router.get("/health/full")
async def health_check_full(
    extractor: MediaExtractor = Depends(get_extractor),
    store: FileStore = Depends(get_file_store),
    limiter: ConcurrencyLimiter = Depends(get_download_limiter),
):
    """Detailed health check"""
    available = await _probe_extractor(extractor)
    stats = store.stats()

    return {
        "status": i18n.get("health.status") if available else i18n.get("health.degraded"),
        "ytdlp_available": available,
        "ytdlp_version": state.ytdlp_version,
        "redis_status": await _redis_status(),
        "active_downloads": limiter.active,
        "max_concurrent_downloads": limiter.max_concurrent,
        "stored_files": stats["file_count"],
        "stored_bytes": stats["total_bytes"],
    }
