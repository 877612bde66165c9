from urllib.parse import quote
from fastapi import APIRouter, Depends, Request
from vidvault.api.deps import get_executor
from vidvault.models.request import VideoRequest
from vidvault.models.response import DownloadResponse
from vidvault.services.download import DownloadExecutor
from vidvault.core.logging import log_info
from vidvault.utils.locale import get_locale, safe_url_for_log
from vidvault.i18n import i18n
import functools

router = APIRouter()


def file_url(file_name: str) -> str:
    return f"/files/{quote(file_name)}"


@router.post("/download", response_model=DownloadResponse)
async def download_video(
    request: Request,
    video_request: VideoRequest,
    executor: DownloadExecutor = Depends(get_executor),
):
    """Download a video into the file store"""

    locale = get_locale(request.headers.get("accept-language"))
    _ = functools.partial(i18n.get, locale=locale)

    intent = video_request.to_intent()
    safe_url = safe_url_for_log(intent.url)
    log_info(request, _("log.starting_download", url=safe_url, quality=intent.quality_label, ext=intent.extension))

    stored = await executor.run(intent)

    log_info(request, _("log.download_complete", file=stored.file_name, size=stored.size_bytes))
    return DownloadResponse(
        file_name=stored.file_name,
        size_bytes=stored.size_bytes,
        download_url=file_url(stored.file_name),
    )
