"""
Generate log records and export them directly through a LogRecordExporter.

Each record carries:
- the configured body, expanded per record when it is a mock-data template
- severity text/number resolved through the OTEL severity bands
- optional trace_id/span_id for correlation
- fresh telemetry attributes with sensitive and mock markers
"""

import time
from functools import partial
from typing import Any

from opentelemetry import trace
from opentelemetry._logs import LogRecord, SeverityNumber
from opentelemetry.sdk._logs import ReadableLogRecord
from opentelemetry.sdk._logs.export import LogRecordExporter
from opentelemetry.sdk.util.instrumentation import InstrumentationScope
from opentelemetry.trace import NonRecordingSpan, SpanContext, TraceFlags
from structlog.typing import FilteringBoundLogger

from .. import __version__
from ..attributes.attribute_processor import with_mock_marker
from ..attributes.mock_data import MockTemplateEngine, is_template
from ..config import LogsConfig
from ..engine.coordinator import run_workers
from ..validators.otel_validator import SeverityError, parse_severity
from .worker import SignalWorker

SCOPE_NAME = "telgen"


def log_context(trace_id: str, span_id: str) -> Any:
    """Context whose current span carries the configured ids, or None when neither is set."""
    if not trace_id and not span_id:
        return None
    span_context = SpanContext(
        trace_id=int(trace_id, 16) if trace_id else 0,
        span_id=int(span_id, 16) if span_id else 0,
        is_remote=False,
        trace_flags=TraceFlags(TraceFlags.SAMPLED),
    )
    return trace.set_span_in_context(NonRecordingSpan(span_context))


class LogWorker(SignalWorker):
    """Emits one log record per iteration."""

    signal = "logs"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.scope = InstrumentationScope(SCOPE_NAME, __version__)
        self.context = log_context(self.cfg.trace_id, self.cfg.span_id)
        self._templated_severity = self.mock_engine is not None and is_template(
            self.cfg.severity_number
        )
        self._static_severity: tuple[str, SeverityNumber] | None = None
        if not self._templated_severity:
            self._static_severity = parse_severity(
                self.cfg.severity_text, _severity_number(self.cfg.severity_number)
            )

    def _severity(self) -> tuple[str, SeverityNumber]:
        if self._static_severity is not None:
            return self._static_severity
        number = self.mock_engine.expand(self.cfg.severity_number)
        return parse_severity(self.cfg.severity_text, _severity_number(number))

    def build_record(self) -> ReadableLogRecord:
        attrs, expanded = self.telemetry.build_without_mock_marker()
        body = self.cfg.body
        if self.mock_engine is not None and is_template(body):
            expanded_body = self.mock_engine.expand(body)
            if expanded_body != body:
                expanded.append("body")
            body = expanded_body
        severity_text, severity_number = self._severity()

        now = time.time_ns()
        record = LogRecord(
            timestamp=now,
            observed_timestamp=now,
            context=self.context,
            severity_text=severity_text,
            severity_number=severity_number,
            body=body,
            attributes={
                "service.name": self.cfg.service_name,
                **with_mock_marker(attrs, expanded),
            },
        )
        return ReadableLogRecord(record, resource=self.resource, instrumentation_scope=self.scope)

    def emit(self, iteration: int) -> None:
        self.export([self.build_record()])


def _severity_number(value: str) -> int:
    try:
        return int(str(value).strip())
    except ValueError:
        raise SeverityError(f"severity-number must be an integer, got {value!r}") from None


def run(
    cfg: LogsConfig,
    exporter: LogRecordExporter,
    mock_engine: MockTemplateEngine | None = None,
    logger: FilteringBoundLogger | None = None,
) -> int:
    """Generate logs with cfg.workers workers; return the number exported."""
    make_worker = partial(
        LogWorker, cfg=cfg, exporter=exporter, mock_engine=mock_engine, logger=logger
    )
    return run_workers(cfg, make_worker, exporter, logger)
