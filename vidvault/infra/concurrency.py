import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator
from vidvault.core.errors import ServerBusy

logger = logging.getLogger(__name__)


class ConcurrencyLimiter:
    """
    Bound on simultaneous extractor processes.
    Callers wait up to queue_timeout for a slot, then get ServerBusy.
    """

    def __init__(self, name: str, max_concurrent: int, queue_timeout: float):
        self.name = name
        self.max_concurrent = max_concurrent
        self.queue_timeout = queue_timeout
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._active = 0

    @property
    def active(self) -> int:
        return self._active

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        if self.queue_timeout <= 0:
            # No queueing: take a free slot right away or refuse
            if self._semaphore.locked():
                logger.warning(f"{self.name}: no free slot")
                raise ServerBusy("no free slot", max=self.max_concurrent)
            await self._semaphore.acquire()
        else:
            try:
                await asyncio.wait_for(self._semaphore.acquire(), timeout=self.queue_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"{self.name}: no free slot after {self.queue_timeout}s")
                raise ServerBusy("no free slot", max=self.max_concurrent)

        self._active += 1
        try:
            yield
        finally:
            self._active -= 1
            self._semaphore.release()
