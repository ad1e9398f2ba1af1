"""
Sliding window admission control for outbound requests.

Callers block in ``acquire()`` until sending one more request keeps the
number of requests dispatched in the trailing window at or below the limit.
Two flavours share the same ledger logic:
- SlidingWindowLimiter: for threads (blocking wait on a condition)
- AsyncSlidingWindowLimiter: for asyncio tasks (timed condition wait)
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable

from crpt.errors import AdmissionCancelledError, ConfigurationError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class LimiterState:
    """Point-in-time snapshot of a limiter."""

    active: int
    """Admissions still inside the window."""

    remaining: int
    """Admissions available right now."""

    limit: int
    """Maximum admissions per window."""

    window_seconds: float
    """Window length in seconds."""

    waiting: int
    """Callers currently blocked in acquire()."""

    retry_after: float | None = None
    """Seconds until a slot frees up (None if one is free)."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "active": self.active,
            "remaining": self.remaining,
            "limit": self.limit,
            "window_seconds": self.window_seconds,
            "waiting": self.waiting,
            "retry_after": self.retry_after,
        }


def window_to_seconds(window: float | timedelta) -> float:
    """Convert a window given as seconds or timedelta to float seconds."""
    if isinstance(window, timedelta):
        return window.total_seconds()
    if isinstance(window, bool) or not isinstance(window, (int, float)):
        raise ConfigurationError(f"window must be a number of seconds or timedelta, got {window!r}")
    return float(window)


def validate_limit(limit: Any) -> int:
    """Check that a request limit is a positive integer."""
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise ConfigurationError("request_limit must be a positive integer")
    return limit


class _SlidingWindowBase:
    """
    Ledger bookkeeping shared by the thread and asyncio limiters.

    The ledger holds admission timestamps in insertion order, which is
    also age order, so expired entries are always at the front. Waiters
    are queued by arrival and only the head of the queue may take a slot.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float | timedelta,
        clock: Clock = time.monotonic,
    ) -> None:
        """
        Initialize the limiter.

        Args:
            limit: Maximum requests per window (positive integer)
            window_seconds: Window length in seconds, or a timedelta
            clock: Monotonic time source returning seconds

        Raises:
            ConfigurationError: If limit or window is invalid
        """
        window = window_to_seconds(window_seconds)
        if window <= 0:
            raise ConfigurationError("window_seconds must be positive")

        self._limit = validate_limit(limit)
        self._window_seconds = window
        self._clock = clock
        self._timestamps: deque[float] = deque()
        self._waiters: deque[object] = deque()
        self._closed = False

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @property
    def closed(self) -> bool:
        return self._closed

    def _purge(self, now: float) -> None:
        """Drop timestamps whose age has reached the window length."""
        while self._timestamps and now - self._timestamps[0] >= self._window_seconds:
            self._timestamps.popleft()

    def _try_admit(self, ticket: object, now: float) -> bool:
        """Record an admission if the ticket is first in line and a slot is free."""
        self._purge(now)
        if self._waiters[0] is ticket and len(self._timestamps) < self._limit:
            self._timestamps.append(now)
            return True
        return False

    def _wait_time(self, ticket: object, now: float) -> float | None:
        """
        Seconds until the oldest admission expires.

        Returns None when another caller is ahead of the ticket, since
        only the head of the queue tracks the window.
        """
        if self._waiters[0] is not ticket:
            return None
        return self._window_seconds - (now - self._timestamps[0])

    def _snapshot(self) -> LimiterState:
        now = self._clock()
        self._purge(now)
        active = len(self._timestamps)
        retry_after = None
        if active >= self._limit:
            retry_after = max(0.0, self._window_seconds - (now - self._timestamps[0]))

        return LimiterState(
            active=active,
            remaining=max(0, self._limit - active),
            limit=self._limit,
            window_seconds=self._window_seconds,
            waiting=len(self._waiters),
            retry_after=retry_after,
        )


class SlidingWindowLimiter(_SlidingWindowBase):
    """
    Thread-safe blocking sliding window limiter.

    Example:
        ```python
        limiter = SlidingWindowLimiter(limit=3, window_seconds=1.0)
        limiter.acquire()  # returns once a slot has been reserved
        ```

    The condition lock is released while a caller sleeps, so other
    threads can purge, queue up or inspect state in the meantime.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float | timedelta,
        clock: Clock = time.monotonic,
    ) -> None:
        super().__init__(limit, window_seconds, clock)
        self._cond = threading.Condition(threading.Lock())

    @property
    def active(self) -> int:
        """Number of admissions inside the current window."""
        return self.check().active

    def acquire(self) -> None:
        """
        Block until a slot is free, then reserve it.

        Raises:
            AdmissionCancelledError: If the limiter is closed before or
                while waiting
        """
        with self._cond:
            if self._closed:
                raise AdmissionCancelledError()

            ticket = object()
            self._waiters.append(ticket)
            try:
                while True:
                    now = self._clock()
                    if self._try_admit(ticket, now):
                        logger.debug(f"Admitted ({len(self._timestamps)}/{self._limit} in window)")
                        return

                    wait_time = self._wait_time(ticket, now)
                    if wait_time is None:
                        # Someone is ahead of us; wait for them to finish.
                        self._cond.wait()
                    elif wait_time > 0:
                        logger.debug(f"Window full, waiting {wait_time:.3f}s")
                        self._cond.wait(wait_time)

                    if self._closed:
                        raise AdmissionCancelledError()
            finally:
                self._waiters.remove(ticket)
                self._cond.notify_all()

    def check(self) -> LimiterState:
        """Return the current state without consuming a slot."""
        with self._cond:
            return self._snapshot()

    def close(self) -> None:
        """Wake all waiters with AdmissionCancelledError and refuse new callers."""
        with self._cond:
            if self._closed:
                return
            self._closed = True
            waiting = len(self._waiters)
            self._cond.notify_all()
        logger.info(f"Limiter closed ({waiting} waiters cancelled)")

    def __enter__(self) -> SlidingWindowLimiter:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class AsyncSlidingWindowLimiter(_SlidingWindowBase):
    """
    Sliding window limiter for asyncio tasks.

    Waiting is a timed wait on an asyncio.Condition, so the event loop
    keeps running other tasks. Task cancellation propagates out of
    acquire() unchanged.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float | timedelta,
        clock: Clock = time.monotonic,
    ) -> None:
        super().__init__(limit, window_seconds, clock)
        self._cond = asyncio.Condition()

    async def acquire(self) -> None:
        """
        Wait until a slot is free, then reserve it.

        Raises:
            AdmissionCancelledError: If the limiter is closed before or
                while waiting
            asyncio.CancelledError: If the waiting task is cancelled
        """
        async with self._cond:
            if self._closed:
                raise AdmissionCancelledError()

            ticket = object()
            self._waiters.append(ticket)
            try:
                while True:
                    now = self._clock()
                    if self._try_admit(ticket, now):
                        logger.debug(f"Admitted ({len(self._timestamps)}/{self._limit} in window)")
                        return

                    wait_time = self._wait_time(ticket, now)
                    if wait_time is None:
                        await self._cond.wait()
                    elif wait_time > 0:
                        logger.debug(f"Window full, waiting {wait_time:.3f}s")
                        try:
                            await asyncio.wait_for(self._cond.wait(), wait_time)
                        except asyncio.TimeoutError:
                            pass  # Oldest entry expired; recheck

                    if self._closed:
                        raise AdmissionCancelledError()
            finally:
                self._waiters.remove(ticket)
                self._cond.notify_all()

    def check(self) -> LimiterState:
        """Return the current state without consuming a slot."""
        return self._snapshot()

    async def close(self) -> None:
        """Wake all waiters with AdmissionCancelledError and refuse new callers."""
        async with self._cond:
            if self._closed:
                return
            self._closed = True
            waiting = len(self._waiters)
            self._cond.notify_all()
        logger.info(f"Limiter closed ({waiting} waiters cancelled)")

    async def __aenter__(self) -> AsyncSlidingWindowLimiter:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
