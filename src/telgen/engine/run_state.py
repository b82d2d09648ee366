"""Run-wide state shared by the coordinator and its workers."""

import threading


class RunState:
    """
    Running flag, stop event and emitted-record counter for one run.

    Only the coordinator clears the running flag; workers read it and
    increment the counter.
    """

    def __init__(self):
        self.running = threading.Event()
        self.running.set()
        self.stop_event = threading.Event()
        self._lock = threading.Lock()
        self._count = 0

    def is_running(self) -> bool:
        return self.running.is_set()

    def stop(self) -> None:
        """
        Clear the running flag and wake workers blocked on their rate limiter.

        A wait already in progress is cut short too: the worker sees
        RateLimiterCancelled and exits without emitting.
        """
        self.running.clear()
        self.stop_event.set()

    def increment(self) -> int:
        with self._lock:
            self._count += 1
            return self._count

    @property
    def total(self) -> int:
        with self._lock:
            return self._count
