import logging

from vidvault.infra.concurrency import ConcurrencyLimiter
from vidvault.models.internal import DownloadIntent, StoredFile
from vidvault.services.extractor import MediaExtractor
from vidvault.services.format import DEFAULT_SELECTOR, FormatDecision
from vidvault.services.platform import PlatformDetector
from vidvault.services.storage import FileStore
from vidvault.utils.locale import safe_url_for_log

logger = logging.getLogger(__name__)


class DownloadExecutor:
    """Materialize a chosen format into the file store"""

    def __init__(
        self,
        extractor: MediaExtractor,
        store: FileStore,
        detector: PlatformDetector,
        limiter: ConcurrencyLimiter,
        default_selector: str = DEFAULT_SELECTOR,
    ):
        self.extractor = extractor
        self.store = store
        self.detector = detector
        self.limiter = limiter
        self.default_selector = default_selector

    async def execute(self, url: str, quality_label: str = "best", extension: str = "mp4") -> StoredFile:
        """
        Download url at the requested quality into a freshly reserved name.
        Raises InvalidURL/UnsupportedPlatform before any process is spawned,
        DownloadFailure/ServerBusy afterwards. A failed or cancelled download
        leaves nothing behind in the store.
        """
        reference = self.detector.reference(url)
        ext = FormatDecision.normalize_extension(extension)
        selector = FormatDecision.decide(quality_label, self.default_selector, ext)

        file_name = self.store.reserve_name(ext)
        safe_url = safe_url_for_log(reference.url)

        async with self.limiter.slot():
            destination = self.store.staging_path(file_name)
            logger.info(f"Starting download of {safe_url} as {file_name} ({quality_label!r} -> {selector})")
            try:
                await self.extractor.fetch_media(reference.url, selector, destination)
                stored = self.store.commit(file_name)
            except BaseException:
                self.store.discard(file_name)
                raise

        logger.info(f"Download finished: {file_name} ({stored.size_bytes / 1024 / 1024:.1f} MB)")
        return stored

    async def run(self, intent: DownloadIntent) -> StoredFile:
        return await self.execute(intent.url, intent.quality_label, intent.extension)
