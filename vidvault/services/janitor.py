import asyncio
import logging
from contextlib import suppress
from typing import Optional

from vidvault.services.storage import FileStore

logger = logging.getLogger(__name__)


class Janitor:
    """Periodic age-based sweep of the file store"""

    def __init__(self, store: FileStore, max_age_hours: float = 24, interval_seconds: float = 3600):
        self.store = store
        self.max_age_hours = max_age_hours
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self, max_age_hours: Optional[float] = None) -> int:
        """Sweep now; the filesystem work runs in a thread so requests keep flowing"""
        age = self.max_age_hours if max_age_hours is None else max_age_hours
        removed = await asyncio.to_thread(self.store.sweep, age)
        logger.info(f"Cleaned up {removed} old download file(s)")
        return removed

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception:
                # One failed pass must not end the periodic task
                logger.exception("Cleanup pass failed")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="vidvault-janitor")
        logger.info(
            f"Janitor started (every {self.interval_seconds:.0f}s, max age {self.max_age_hours}h)"
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
