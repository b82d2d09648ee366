"""
Console progress reporting.

Workers push notifications onto a bounded queue; a single reporter thread
prints "<Signal> generated: N" at most once per interval and the final count
on close. A full queue blocks the producing worker.
"""

import queue
import sys
import threading
import time

from ..defaults import PROGRESS_QUEUE_SIZE

_COUNT = "count"
_ERROR = "error"
_STOP = "stop"


class ProgressReporter:
    """Single-threaded printer for per-signal progress."""

    def __init__(self, label: str, interval: float = 1.0, enabled: bool = True):
        self.label = label
        self.interval = interval
        self.enabled = enabled
        self._queue: queue.Queue = queue.Queue(maxsize=PROGRESS_QUEUE_SIZE)
        self._thread: threading.Thread | None = None
        self._last_count = 0
        self._final_count: int | None = None

    @property
    def started(self) -> bool:
        return self._thread is not None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name=f"telgen-progress-{self.label.lower()}", daemon=True
        )
        self._thread.start()

    def notify(self, count: int) -> None:
        """Report the shared counter after a worker emitted a record."""
        self._queue.put((_COUNT, count))

    def error(self, message: str) -> None:
        """Report a worker-local failure."""
        self._queue.put((_ERROR, message))

    def close(self, total: int | None = None) -> int:
        """Drain pending notifications, print the final count once and return it."""
        if self._final_count is not None:
            return self._final_count
        if self._thread is not None:
            self._queue.put((_STOP, None))
            self._thread.join()
        else:
            self._drain()
        final = self._last_count if total is None else total
        self._final_count = final
        if self.enabled:
            print(f"{self.label} generated (final count): {final}", flush=True)
        return final

    def _drain(self) -> None:
        while True:
            try:
                kind, value = self._queue.get_nowait()
            except queue.Empty:
                return
            self._handle(kind, value)

    def _run(self) -> None:
        last_print = time.monotonic()
        while True:
            kind, value = self._queue.get()
            if kind == _STOP:
                return
            now = time.monotonic()
            self._handle(kind, value)
            if kind == _COUNT and self.enabled and now - last_print >= self.interval:
                print(f"{self.label} generated: {self._last_count}", flush=True)
                last_print = now

    def _handle(self, kind: str, value) -> None:
        if kind == _COUNT:
            self._last_count = max(self._last_count, value)
        elif kind == _ERROR and self.enabled:
            print(f"Error: {value}", file=sys.stderr, flush=True)
