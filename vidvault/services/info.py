import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError
from redis.exceptions import RedisError

from vidvault.infra.concurrency import ConcurrencyLimiter
from vidvault.infra.redis import get_redis
from vidvault.models.internal import MediaMetadata
from vidvault.services.extractor import MediaExtractor
from vidvault.services.format import FormatDecision
from vidvault.services.platform import PlatformDetector
from vidvault.utils.hash import hash_stable
from vidvault.utils.locale import safe_url_for_log

logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_AUTHOR = "Unknown Author"


def _text(value: Any, default: str) -> str:
    if value is None:
        return default
    value = str(value).strip()
    return value or default


def _seconds(value: Any) -> int:
    try:
        return max(int(round(float(value))), 0)
    except (TypeError, ValueError):
        return 0


class MetadataResolver:
    """Resolve a URL to normalized MediaMetadata"""

    def __init__(
        self,
        extractor: MediaExtractor,
        detector: PlatformDetector,
        limiter: ConcurrencyLimiter,
        cache_ttl: int = 0,
    ):
        self.extractor = extractor
        self.detector = detector
        self.limiter = limiter
        self.cache_ttl = cache_ttl

    @staticmethod
    def normalize(info: Dict[str, Any], platform: str) -> MediaMetadata:
        """Build MediaMetadata from a raw extractor record; never emits null fields"""
        return MediaMetadata(
            title=_text(info.get("title"), UNKNOWN_TITLE),
            duration_seconds=_seconds(info.get("duration")),
            thumbnail_url=_text(info.get("thumbnail"), ""),
            author=_text(
                info.get("uploader") or info.get("creator") or info.get("channel"),
                UNKNOWN_AUTHOR,
            ),
            platform=platform,
            video_id=_text(info.get("id"), ""),
            formats=FormatDecision.build_catalog(info.get("formats") or []),
        )

    async def _cached(self, cache_key: str) -> Optional[MediaMetadata]:
        redis = get_redis()
        if not redis or not self.cache_ttl:
            return None
        try:
            cached = await redis.get(cache_key)
            if cached:
                return MediaMetadata(**json.loads(cached))
        except (RedisError, ValueError, ValidationError) as e:
            logger.debug(f"Ignoring metadata cache entry {cache_key}: {e}")
        return None

    async def _store(self, cache_key: str, metadata: MediaMetadata) -> None:
        redis = get_redis()
        if not redis or not self.cache_ttl:
            return
        try:
            await redis.setex(cache_key, self.cache_ttl, metadata.model_dump_json())
        except RedisError as e:
            logger.debug(f"Metadata cache write failed: {e}")

    async def resolve(self, url: str) -> MediaMetadata:
        """
        Detect the platform (fails fast, no process spawned), then fetch and
        normalize metadata. Raises InvalidURL, UnsupportedPlatform or
        ExtractionFailure.
        """
        reference = self.detector.reference(url)

        cache_key = f"info:{hash_stable(reference.url)}"
        cached = await self._cached(cache_key)
        if cached:
            return cached

        async with self.limiter.slot():
            info = await self.extractor.fetch_metadata(reference.url)

        metadata = self.normalize(info, reference.platform)
        logger.info(
            f"Resolved {safe_url_for_log(reference.url)} "
            f"({metadata.platform}, {len(metadata.formats)} formats)"
        )

        await self._store(cache_key, metadata)
        return metadata
