"""
Shared worker loop for the three signal generators.

Each worker owns its rate limiter and emits one record (or one trace) per
iteration. Template, severity, export and cancellation errors stop only the
worker that hit them.
"""

from typing import Any

from opentelemetry.sdk.resources import Resource
from structlog.typing import FilteringBoundLogger

from ..attributes.attribute_processor import AttributeProcessor, resource_processor
from ..attributes.mock_data import MockTemplateEngine, MockTemplateError
from ..config import CommonConfig
from ..engine.progress import ProgressReporter
from ..engine.rate_limiter import RateLimiter, RateLimiterCancelled
from ..engine.run_state import RunState
from ..logger import get_logger
from ..validators.otel_validator import SeverityError


class ExportError(RuntimeError):
    """The exporter returned a non-success result or raised."""


def build_resource(cfg: CommonConfig, mock_engine: MockTemplateEngine | None = None) -> Resource:
    """Resource for one worker; service.name defaults to the configured service."""
    attrs = resource_processor(
        cfg.resource_attributes, cfg.service_name, cfg.sensitive_data, mock_engine
    ).build()
    return Resource.create(attrs)


class SignalWorker:
    """Base worker; subclasses implement emit(iteration)."""

    signal = ""

    def __init__(
        self,
        index: int,
        cfg: CommonConfig,
        exporter: Any,
        state: RunState,
        progress: ProgressReporter,
        limit: int = 0,
        mock_engine: MockTemplateEngine | None = None,
        logger: FilteringBoundLogger | None = None,
    ):
        self.index = index
        self.cfg = cfg
        self.exporter = exporter
        self.state = state
        self.progress = progress
        self.limit = limit
        self.mock_engine = mock_engine
        self.resource = build_resource(cfg, mock_engine)
        self.limiter = RateLimiter(cfg.rate)
        self.telemetry = AttributeProcessor(
            cfg.telemetry_attributes, cfg.sensitive_data, mock_engine
        )
        self.log = (logger or get_logger(self.signal)).bind(worker=index, signal=self.signal)

    def emit(self, iteration: int) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Release per-worker resources once the loop ends."""

    def export(self, batch: Any) -> None:
        """Hand one batch to the exporter; anything but SUCCESS raises ExportError."""
        try:
            result = self.exporter.export(batch)
        except Exception as e:
            raise ExportError(f"failed to export {self.signal}: {e}") from e
        if getattr(result, "name", None) != "SUCCESS":
            raise ExportError(f"failed to export {self.signal}: exporter returned {result}")

    def run(self) -> int:
        """Emit until the limit is reached or the run stops; return this worker's count."""
        emitted = 0
        self.log.debug("worker started")
        try:
            emitted = self._loop()
        finally:
            self.close()
        self.log.debug("worker stopped", **{f"{self.signal}_emitted": emitted})
        return emitted

    def _loop(self) -> int:
        emitted = 0
        while self.state.is_running() and (self.limit <= 0 or emitted < self.limit):
            try:
                self.limiter.wait(self.state.stop_event)
                self.emit(emitted)
            except RateLimiterCancelled:
                self.log.debug("rate limiter wait cancelled")
                break
            except (MockTemplateError, SeverityError, ExportError) as e:
                self._fail(e)
                break
            emitted += 1
            self.progress.notify(self.state.increment())
        return emitted

    def _fail(self, err: Exception) -> None:
        self.log.error(str(err), error_kind=type(err).__name__)
        self.progress.error(f"worker {self.index}: {err}")
