"""Shared fixtures: capturing exporters for the three signals and config factories."""

import threading
from collections.abc import Callable, Iterator

import pytest
import structlog
from opentelemetry.sdk._logs.export import LogRecordExporter, LogRecordExportResult
from opentelemetry.sdk.metrics.export import MetricExporter, MetricExportResult
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

from telgen.config import LogsConfig, MetricsConfig, TracesConfig
from telgen.logger import create_logger


class _Capture:
    """Records every exported batch and counts shutdown calls."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.batches: list = []
        self.shutdown_calls = 0
        self._lock = threading.Lock()

    def _record(self, batch) -> bool:
        with self._lock:
            self.batches.append(batch)
        return not self.fail

    @property
    def items(self) -> list:
        with self._lock:
            return [item for batch in self.batches for item in batch]


class CapturingLogExporter(_Capture, LogRecordExporter):
    def export(self, batch):
        ok = self._record(list(batch))
        return LogRecordExportResult.SUCCESS if ok else LogRecordExportResult.FAILURE

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True

    def shutdown(self):
        self.shutdown_calls += 1


class CapturingSpanExporter(_Capture, SpanExporter):
    def export(self, spans):
        ok = self._record(list(spans))
        return SpanExportResult.SUCCESS if ok else SpanExportResult.FAILURE

    def shutdown(self):
        self.shutdown_calls += 1


class CapturingMetricExporter(_Capture, MetricExporter):
    def __init__(self, fail: bool = False):
        _Capture.__init__(self, fail)
        MetricExporter.__init__(self)

    def export(self, metrics_data, timeout_millis: float = 10000, **kwargs):
        ok = self._record([metrics_data])
        return MetricExportResult.SUCCESS if ok else MetricExportResult.FAILURE

    def force_flush(self, timeout_millis: float = 10000) -> bool:
        return True

    def shutdown(self, timeout_millis: float = 30000, **kwargs):
        self.shutdown_calls += 1

    @property
    def points(self) -> list:
        """Every data point, in export order."""
        return [
            (metric, point)
            for data in self.items
            for rm in data.resource_metrics
            for sm in rm.scope_metrics
            for metric in sm.metrics
            for point in metric.data.data_points
        ]


@pytest.fixture(autouse=True)
def _quiet_logging() -> Iterator[None]:
    """Discard structured logs unless a test captures or configures them."""
    create_logger("debug", terminal_output=True)
    yield
    structlog.reset_defaults()


@pytest.fixture
def log_exporter() -> CapturingLogExporter:
    return CapturingLogExporter()


@pytest.fixture
def span_exporter() -> CapturingSpanExporter:
    return CapturingSpanExporter()


@pytest.fixture
def metric_exporter() -> CapturingMetricExporter:
    return CapturingMetricExporter()


# Unthrottled, quiet and reproducible unless a test says otherwise.
_TEST_DEFAULTS = {"rate": 0.0, "terminal_output": False, "mock_seed": 42}


@pytest.fixture
def logs_config() -> Callable[..., LogsConfig]:
    def make(**overrides) -> LogsConfig:
        return LogsConfig(**{**_TEST_DEFAULTS, **overrides})

    return make


@pytest.fixture
def metrics_config() -> Callable[..., MetricsConfig]:
    def make(**overrides) -> MetricsConfig:
        return MetricsConfig(**{**_TEST_DEFAULTS, **overrides})

    return make


@pytest.fixture
def traces_config() -> Callable[..., TracesConfig]:
    def make(**overrides) -> TracesConfig:
        return TracesConfig(**{**_TEST_DEFAULTS, **overrides})

    return make
