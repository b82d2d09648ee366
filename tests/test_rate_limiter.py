"""Tests for per-worker token bucket pacing."""

import threading
import time

import pytest

from telgen.engine.rate_limiter import RateLimiter, RateLimiterCancelled
from telgen.engine.run_state import RunState


def test_zero_rate_never_blocks() -> None:
    """Rate 0 means unbounded: many waits return immediately."""
    limiter = RateLimiter(0)
    start = time.monotonic()
    for _ in range(10_000):
        limiter.wait()
    assert limiter.unbounded
    assert time.monotonic() - start < 1.0


def test_negative_rate_is_unbounded() -> None:
    assert RateLimiter(-5).unbounded


def test_first_wait_is_immediate() -> None:
    """The bucket starts full."""
    limiter = RateLimiter(0.1)
    start = time.monotonic()
    limiter.wait()
    assert time.monotonic() - start < 0.5


def test_waits_are_spaced_by_rate() -> None:
    """Three waits at 20/s take at least two intervals."""
    limiter = RateLimiter(20)
    start = time.monotonic()
    for _ in range(3):
        limiter.wait()
    assert time.monotonic() - start >= 0.09


def test_idle_time_refills_a_single_token() -> None:
    """After a long idle period the next wait does not block, but burst stays 1."""
    now = [100.0]
    limiter = RateLimiter(1, clock=lambda: now[0])
    limiter.wait()
    now[0] = 200.0
    start = time.monotonic()
    limiter.wait()
    assert time.monotonic() - start < 0.5


def test_cancel_before_wait_raises() -> None:
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(RateLimiterCancelled):
        RateLimiter(1).wait(cancel)


def test_cancel_during_wait_raises_promptly() -> None:
    """Setting the cancel event wakes a blocked wait."""
    limiter = RateLimiter(0.5)
    limiter.wait()
    cancel = threading.Event()
    timer = threading.Timer(0.05, cancel.set)
    timer.start()
    start = time.monotonic()
    try:
        with pytest.raises(RateLimiterCancelled):
            limiter.wait(cancel)
    finally:
        timer.cancel()
    assert time.monotonic() - start < 1.0


def test_run_state_stop_interrupts_wait_in_progress() -> None:
    state = RunState()
    limiter = RateLimiter(0.5)
    limiter.wait(state.stop_event)
    timer = threading.Timer(0.05, state.stop)
    timer.start()
    start = time.monotonic()
    try:
        with pytest.raises(RateLimiterCancelled):
            limiter.wait(state.stop_event)
    finally:
        timer.cancel()
    assert time.monotonic() - start < 1.0
    assert not state.is_running()
