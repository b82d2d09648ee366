"""
Per-worker token bucket pacing.

Burst is one token and the bucket starts full, so the first wait returns
immediately and later waits are spaced 1/rate seconds apart.
"""

import math
import threading
import time
from collections.abc import Callable


class RateLimiterCancelled(RuntimeError):
    """Raised when a wait is interrupted by the cancel event."""


class RateLimiter:
    """Token bucket with burst 1. A rate of 0 (or below, or infinity) never blocks."""

    def __init__(self, rate: float, clock: Callable[[], float] = time.monotonic):
        self.rate = rate
        self._interval = 1.0 / rate if 0 < rate < math.inf else 0.0
        self._clock = clock
        self._next: float | None = None

    @property
    def unbounded(self) -> bool:
        return self._interval == 0.0

    def wait(self, cancel: threading.Event | None = None) -> None:
        """Block until a token is available and consume it."""
        if cancel is not None and cancel.is_set():
            raise RateLimiterCancelled("rate limiter wait cancelled")
        if self.unbounded:
            return

        now = self._clock()
        if self._next is None or self._next <= now:
            self._next = now + self._interval
            return

        delay = self._next - now
        if cancel is not None:
            if cancel.wait(delay):
                raise RateLimiterCancelled("rate limiter wait cancelled")
        else:
            time.sleep(delay)
        self._next += self._interval
