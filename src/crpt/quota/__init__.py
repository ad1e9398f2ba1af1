"""
Admission control for outbound requests.

Provides blocking sliding window limiters that pace callers so no more
than a fixed number of requests are dispatched in any trailing window.
"""

from crpt.quota.limiter import (
    AsyncSlidingWindowLimiter,
    LimiterState,
    SlidingWindowLimiter,
    validate_limit,
    window_to_seconds,
)

__all__ = [
    "AsyncSlidingWindowLimiter",
    "LimiterState",
    "SlidingWindowLimiter",
    "validate_limit",
    "window_to_seconds",
]
