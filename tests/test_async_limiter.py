"""Tests for the asyncio sliding window limiter."""

import asyncio
import time

import pytest

from crpt.errors import AdmissionCancelledError, ConfigurationError
from crpt.quota.limiter import AsyncSlidingWindowLimiter


async def wait_for_waiters(limiter: AsyncSlidingWindowLimiter, count: int) -> None:
    for _ in range(400):
        if limiter.check().waiting >= count:
            return
        await asyncio.sleep(0.005)
    raise AssertionError("waiters never queued")


class TestAsyncSlidingWindowLimiter:
    """Tests for AsyncSlidingWindowLimiter."""

    def test_rejects_invalid_limit(self) -> None:
        with pytest.raises(ConfigurationError):
            AsyncSlidingWindowLimiter(limit=0, window_seconds=1.0)

    @pytest.mark.asyncio
    async def test_acquire_below_limit(self, fake_clock) -> None:
        """Test slots under the limit are granted immediately."""
        limiter = AsyncSlidingWindowLimiter(limit=2, window_seconds=1.0, clock=fake_clock)
        await limiter.acquire()
        await limiter.acquire()

        state = limiter.check()
        assert state.active == 2
        assert state.remaining == 0

    @pytest.mark.asyncio
    async def test_waits_for_window(self) -> None:
        """Test a call beyond the limit is delayed, not rejected."""
        limiter = AsyncSlidingWindowLimiter(limit=2, window_seconds=0.3)
        start = time.monotonic()
        for _ in range(3):
            await limiter.acquire()
        elapsed = time.monotonic() - start

        assert 0.28 <= elapsed < 1.0

    @pytest.mark.asyncio
    async def test_concurrent_tasks_respect_limit(self) -> None:
        """Test many tasks never exceed the limit within a window."""
        limiter = AsyncSlidingWindowLimiter(limit=2, window_seconds=0.2)
        admitted: list[float] = []

        async def worker() -> None:
            await limiter.acquire()
            admitted.append(time.monotonic())
            assert limiter.check().active <= 2

        start = time.monotonic()
        await asyncio.gather(*(worker() for _ in range(6)))

        assert len(admitted) == 6
        assert time.monotonic() - start >= 0.38

    @pytest.mark.asyncio
    async def test_arrival_order(self) -> None:
        """Test blocked tasks are admitted in the order they started waiting."""
        limiter = AsyncSlidingWindowLimiter(limit=1, window_seconds=0.1)
        await limiter.acquire()
        order: list[int] = []

        async def worker(n: int) -> None:
            await limiter.acquire()
            order.append(n)

        tasks = []
        for n in range(4):
            tasks.append(asyncio.create_task(worker(n)))
            await wait_for_waiters(limiter, n + 1)
        await asyncio.gather(*tasks)

        assert order == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_task_cancellation_propagates(self) -> None:
        """Test cancelling a waiting task raises CancelledError and frees its place."""
        limiter = AsyncSlidingWindowLimiter(limit=1, window_seconds=10.0)
        await limiter.acquire()

        task = asyncio.create_task(limiter.acquire())
        await wait_for_waiters(limiter, 1)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert limiter.check().waiting == 0
        assert limiter.check().active == 1

    @pytest.mark.asyncio
    async def test_close_cancels_waiters(self) -> None:
        limiter = AsyncSlidingWindowLimiter(limit=1, window_seconds=10.0)
        await limiter.acquire()

        task = asyncio.create_task(limiter.acquire())
        await wait_for_waiters(limiter, 1)
        await limiter.close()

        with pytest.raises(AdmissionCancelledError):
            await task
        with pytest.raises(AdmissionCancelledError):
            await limiter.acquire()

    @pytest.mark.asyncio
    async def test_context_manager(self) -> None:
        async with AsyncSlidingWindowLimiter(limit=1, window_seconds=1.0) as limiter:
            await limiter.acquire()
        assert limiter.closed is True
