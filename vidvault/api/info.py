from fastapi import APIRouter, Depends, Request
from vidvault.api.deps import get_resolver
from vidvault.models.request import InfoRequest
from vidvault.models.internal import MediaMetadata
from vidvault.services.info import MetadataResolver
from vidvault.core.logging import log_info
from vidvault.utils.locale import get_locale, safe_url_for_log
from vidvault.i18n import i18n
import functools

router = APIRouter()

@router.post("/info", response_model=MediaMetadata)
async def get_video_info(
    request: Request,
    video_request: InfoRequest,
    resolver: MetadataResolver = Depends(get_resolver),
):
    """Get normalized metadata and the format catalog for a URL"""

    locale = get_locale(request.headers.get("accept-language"))
    _ = functools.partial(i18n.get, locale=locale)

    safe_url = safe_url_for_log(video_request.url)
    log_info(request, _("log.fetching_info", url=safe_url))

    metadata = await resolver.resolve(video_request.url)
    log_info(request, _("log.info_retrieved", title=metadata.title))
    return metadata
