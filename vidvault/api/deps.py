from functools import lru_cache

from fastapi import Depends

from vidvault.config.settings import config
from vidvault.infra.concurrency import ConcurrencyLimiter
from vidvault.services.download import DownloadExecutor
from vidvault.services.extractor import MediaExtractor, YtDlpExtractor
from vidvault.services.info import MetadataResolver
from vidvault.services.janitor import Janitor
from vidvault.services.platform import PlatformDetector, detector
from vidvault.services.storage import FileStore


@lru_cache
def get_file_store() -> FileStore:
    return FileStore(config.storage.root)


@lru_cache
def get_extractor() -> MediaExtractor:
    return YtDlpExtractor(config.ytdlp, config.download)


def get_detector() -> PlatformDetector:
    return detector


@lru_cache
def get_download_limiter() -> ConcurrencyLimiter:
    return ConcurrencyLimiter(
        "downloads",
        config.download.max_concurrent,
        config.download.queue_timeout_seconds,
    )


@lru_cache
def get_info_limiter() -> ConcurrencyLimiter:
    return ConcurrencyLimiter(
        "metadata",
        config.download.max_concurrent_info,
        config.download.queue_timeout_seconds,
    )


def get_resolver(
    extractor: MediaExtractor = Depends(get_extractor),
    platform_detector: PlatformDetector = Depends(get_detector),
    limiter: ConcurrencyLimiter = Depends(get_info_limiter),
) -> MetadataResolver:
    return MetadataResolver(
        extractor,
        platform_detector,
        limiter,
        cache_ttl=config.redis.info_cache_ttl,
    )


def get_executor(
    extractor: MediaExtractor = Depends(get_extractor),
    store: FileStore = Depends(get_file_store),
    platform_detector: PlatformDetector = Depends(get_detector),
    limiter: ConcurrencyLimiter = Depends(get_download_limiter),
) -> DownloadExecutor:
    return DownloadExecutor(
        extractor,
        store,
        platform_detector,
        limiter,
        default_selector=config.ytdlp.default_format,
    )


def get_janitor(store: FileStore = Depends(get_file_store)) -> Janitor:
    return Janitor(
        store,
        max_age_hours=config.storage.max_age_hours,
        interval_seconds=config.storage.cleanup_interval_minutes * 60,
    )
