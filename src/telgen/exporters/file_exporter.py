"""
File-based exporters for offline analysis and debugging.

Writes generated telemetry as JSON lines for:
- Offline validation
- Test fixtures
- Pipeline debugging
"""

import json
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from opentelemetry.sdk._logs import ReadableLogRecord
from opentelemetry.sdk._logs.export import LogRecordExporter, LogRecordExportResult
from opentelemetry.sdk.metrics.export import MetricExporter, MetricExportResult, MetricsData
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult


class _JsonLinesWriter:
    """Appends JSON lines to one file; safe to share between worker threads."""

    def __init__(self, output_path: str | Path, append: bool = True):
        self.output_path = Path(output_path)
        self.append = append
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

        if not append and self.output_path.exists():
            self.output_path.unlink()

    def write(self, rows: list[dict[str, Any]]) -> bool:
        try:
            lines = "".join(json.dumps(row, default=str) + "\n" for row in rows)
            with self._lock, open(self.output_path, "a", encoding="utf-8") as f:
                f.write(lines)
        except (OSError, TypeError, ValueError):
            return False
        return True


def _hex(value: int | None, width: int) -> str | None:
    return format(value, f"0{width}x") if value else None


def span_to_dict(span: ReadableSpan) -> dict[str, Any]:
    return {
        "name": span.name,
        "trace_id": format(span.context.trace_id, "032x"),
        "span_id": format(span.context.span_id, "016x"),
        "parent_span_id": format(span.parent.span_id, "016x") if span.parent else None,
        "start_time": span.start_time,
        "end_time": span.end_time,
        "status": {
            "status_code": span.status.status_code.name,
            "description": span.status.description,
        },
        "attributes": dict(span.attributes) if span.attributes else {},
        "kind": span.kind.name if span.kind else "INTERNAL",
        "resource": dict(span.resource.attributes) if span.resource else {},
    }


def log_to_dict(readable: ReadableLogRecord) -> dict[str, Any]:
    record = readable.log_record
    return {
        "timestamp": record.timestamp,
        "observed_timestamp": record.observed_timestamp,
        "severity_number": record.severity_number.value if record.severity_number else None,
        "severity_text": record.severity_text,
        "body": record.body,
        "attributes": dict(record.attributes) if record.attributes else {},
        "trace_id": _hex(record.trace_id, 32),
        "span_id": _hex(record.span_id, 16),
        "resource": dict(readable.resource.attributes) if readable.resource else {},
    }


def _point_to_dict(dp: Any) -> dict[str, Any]:
    point: dict[str, Any] = {
        "attributes": dict(dp.attributes) if dp.attributes else {},
        "start_time": dp.start_time_unix_nano,
        "time": dp.time_unix_nano,
    }
    for name in ("value", "count", "sum", "min", "max"):
        if hasattr(dp, name):
            point[name] = getattr(dp, name)
    if hasattr(dp, "bucket_counts"):
        point["bucket_counts"] = list(dp.bucket_counts)
        point["explicit_bounds"] = list(dp.explicit_bounds)
    if dp.exemplars:
        point["exemplars"] = [
            {
                "value": e.value,
                "time": e.time_unix_nano,
                "trace_id": _hex(e.trace_id, 32),
                "span_id": _hex(e.span_id, 16),
            }
            for e in dp.exemplars
        ]
    return point


def metrics_to_dicts(metrics_data: MetricsData) -> list[dict[str, Any]]:
    rows = []
    for resource_metrics in metrics_data.resource_metrics:
        resource_attrs = (
            dict(resource_metrics.resource.attributes) if resource_metrics.resource else {}
        )
        for scope_metrics in resource_metrics.scope_metrics:
            for metric in scope_metrics.metrics:
                rows.append(
                    {
                        "name": metric.name,
                        "type": type(metric.data).__name__,
                        "temporality": getattr(
                            getattr(metric.data, "aggregation_temporality", None), "name", None
                        ),
                        "resource": resource_attrs,
                        "data_points": [_point_to_dict(dp) for dp in metric.data.data_points],
                    }
                )
    return rows


class FileSpanExporter(SpanExporter):
    """Export spans to a JSONL file."""

    def __init__(self, output_path: str | Path, append: bool = True):
        self._writer = _JsonLinesWriter(output_path, append)
        self.output_path = self._writer.output_path

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        if self._writer.write([span_to_dict(span) for span in spans]):
            return SpanExportResult.SUCCESS
        return SpanExportResult.FAILURE

    def shutdown(self) -> None:
        pass

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True


class FileMetricExporter(MetricExporter):
    """Export metrics to a JSONL file."""

    def __init__(self, output_path: str | Path, append: bool = True):
        super().__init__()
        self._writer = _JsonLinesWriter(output_path, append)
        self.output_path = self._writer.output_path

    def export(
        self,
        metrics_data: MetricsData,
        timeout_millis: float = 10000,
        **kwargs,
    ) -> MetricExportResult:
        if self._writer.write(metrics_to_dicts(metrics_data)):
            return MetricExportResult.SUCCESS
        return MetricExportResult.FAILURE

    def shutdown(self, timeout_millis: float = 30000, **kwargs) -> None:
        pass

    def force_flush(self, timeout_millis: float = 10000) -> bool:
        return True


class FileLogExporter(LogRecordExporter):
    """Export logs to a JSONL file."""

    def __init__(self, output_path: str | Path, append: bool = True):
        self._writer = _JsonLinesWriter(output_path, append)
        self.output_path = self._writer.output_path

    def export(self, batch: Sequence[ReadableLogRecord]) -> LogRecordExportResult:
        if self._writer.write([log_to_dict(record) for record in batch]):
            return LogRecordExportResult.SUCCESS
        return LogRecordExportResult.FAILURE

    def shutdown(self) -> None:
        pass

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True
