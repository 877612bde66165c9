import asyncio

import pytest

from vidvault.core.errors import ServerBusy
from vidvault.infra.concurrency import ConcurrencyLimiter


@pytest.mark.asyncio
async def test_zero_timeout_admits_idle_limiter():
    limiter = ConcurrencyLimiter("downloads", 3, 0)
    async with limiter.slot():
        assert limiter.active == 1
    assert limiter.active == 0


@pytest.mark.asyncio
async def test_zero_timeout_refuses_when_full():
    limiter = ConcurrencyLimiter("downloads", 1, 0)
    async with limiter.slot():
        with pytest.raises(ServerBusy):
            async with limiter.slot():
                pass
    async with limiter.slot():
        assert limiter.active == 1


@pytest.mark.asyncio
async def test_waiting_caller_gets_freed_slot():
    limiter = ConcurrencyLimiter("downloads", 1, 1)
    order = []

    async def hold(tag, seconds):
        async with limiter.slot():
            order.append(tag)
            await asyncio.sleep(seconds)

    await asyncio.gather(hold("first", 0.05), hold("second", 0))
    assert order == ["first", "second"]
    assert limiter.active == 0


@pytest.mark.asyncio
async def test_queue_timeout_raises_busy():
    limiter = ConcurrencyLimiter("metadata", 1, 0.05)
    async with limiter.slot():
        with pytest.raises(ServerBusy) as exc:
            async with limiter.slot():
                pass
    assert exc.value.status_code == 503
