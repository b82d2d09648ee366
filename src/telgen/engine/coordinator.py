"""
Run coordinator: owns the worker pool for one signal.

Validates the config, spawns one worker per configured thread, stops them when
the duration elapses (or on Ctrl+C), reports the final count and shuts the
exporter down exactly once.
"""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any

from structlog.typing import FilteringBoundLogger

from ..config import CommonConfig
from ..logger import get_logger
from .progress import ProgressReporter
from .run_state import RunState

WorkerFactory = Callable[..., Any]


def _shutdown_exporter(exporter: Any, logger: FilteringBoundLogger) -> None:
    try:
        exporter.shutdown()
    except Exception as e:
        logger.error("failed to shutdown exporter", error=str(e))


def run_workers(
    cfg: CommonConfig,
    make_worker: WorkerFactory,
    exporter: Any,
    logger: FilteringBoundLogger | None = None,
) -> int:
    """
    Run cfg.workers workers until each hits its count or the duration elapses.

    make_worker is called as make_worker(index=, state=, progress=, limit=) and
    must return an object with a run() method. Returns the total emitted count.
    """
    signal = cfg.SIGNAL
    logger = logger or get_logger(signal)
    progress: ProgressReporter | None = None
    try:
        cfg.validate()

        # A duration overrides the per-worker count.
        limit = 0 if cfg.duration > 0 else cfg.count
        if cfg.rate > 0:
            logger.info(f"generation of {signal} is limited", per_second=cfg.rate)
        else:
            logger.info(f"generation of {signal} isn't being throttled")

        state = RunState()
        progress = ProgressReporter(signal.capitalize(), cfg.interval, cfg.terminal_output)
        workers = [
            make_worker(index=i, state=state, progress=progress, limit=limit)
            for i in range(cfg.workers)
        ]
        progress.start()

        with ThreadPoolExecutor(
            max_workers=cfg.workers, thread_name_prefix=f"telgen-{signal}"
        ) as pool:
            futures = [pool.submit(worker.run) for worker in workers]
            try:
                wait(futures, timeout=cfg.duration if cfg.duration > 0 else None)
            finally:
                state.stop()

        for index, future in enumerate(futures):
            err = future.exception()
            if err is not None:
                logger.error(
                    "worker exited with an unexpected error",
                    exc_info=err,
                    worker=index,
                    error_kind=type(err).__name__,
                )

        total = progress.close(state.total)
        logger.info("final count", **{f"{signal}_generated": total})
        return total
    finally:
        if progress is not None and progress.started:
            progress.close()
        _shutdown_exporter(exporter, logger)
