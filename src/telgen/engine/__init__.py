"""Concurrent generation engine: pacing, shared run state, progress and the worker pool."""

from .coordinator import run_workers
from .progress import ProgressReporter
from .rate_limiter import RateLimiter, RateLimiterCancelled
from .run_state import RunState

__all__ = [
    "run_workers",
    "ProgressReporter",
    "RateLimiter",
    "RateLimiterCancelled",
    "RunState",
]
