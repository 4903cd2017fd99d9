"""
Completion Rate Limiter
=======================

Fixed rolling-window limiter guarding outbound calls to the completion
service: at most N requests in any window. Callers check before a
request and record after issuing it; a rejected check reports how long
until the oldest in-window request expires.
"""

from __future__ import annotations

import math
import time
from typing import Callable, List, Optional

from assist_runtime.config import get_config


class SlidingWindowRateLimiter:
    """Rate limiter over a rolling time window."""

    def __init__(
        self,
        max_requests: Optional[int] = None,
        window_ms: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Requests allowed per window
            window_ms: Window length in milliseconds
            clock: Seconds-based monotonic clock (injectable for tests)
        """
        config = get_config()

        self.max_requests = max_requests or config.rate_limit_max_requests
        self.window_ms = window_ms or config.rate_limit_window_ms
        self._clock = clock
        self._requests: List[float] = []

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def _prune(self, now_ms: float) -> None:
        self._requests = [t for t in self._requests if now_ms - t < self.window_ms]

    def can_make_request(self) -> bool:
        """True if another request fits in the current window."""
        self._prune(self._now_ms())
        return len(self._requests) < self.max_requests

    def record_request(self) -> None:
        """Record an issued request."""
        self._requests.append(self._now_ms())

    def time_until_reset_ms(self) -> float:
        """Milliseconds until the oldest in-window request leaves the window."""
        now_ms = self._now_ms()
        self._prune(now_ms)
        if not self._requests:
            return 0.0
        oldest = min(self._requests)
        return max(0.0, self.window_ms - (now_ms - oldest))

    def wait_seconds(self) -> int:
        """Whole seconds to wait before retrying, rounded up."""
        return math.ceil(self.time_until_reset_ms() / 1000.0)

    def reset(self) -> None:
        """Forget every recorded request."""
        self._requests.clear()


# Global rate limiter instance
_rate_limiter: Optional[SlidingWindowRateLimiter] = None


def get_rate_limiter() -> SlidingWindowRateLimiter:
    """Get the global rate limiter instance."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = SlidingWindowRateLimiter()
    return _rate_limiter


def reset_rate_limiter() -> None:
    """Reset the global rate limiter."""
    global _rate_limiter
    _rate_limiter = None
