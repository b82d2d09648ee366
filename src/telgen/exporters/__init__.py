"""Telemetry exporters for various backends."""

from ..config import CommonConfig
from .console_exporter import create_console_exporter
from .file_exporter import FileLogExporter, FileMetricExporter, FileSpanExporter
from .otlp_exporter import (
    ExporterConfigError,
    create_otlp_log_exporter,
    create_otlp_metric_exporter,
    create_otlp_trace_exporter,
)

_OTLP_FACTORIES = {
    "traces": create_otlp_trace_exporter,
    "metrics": create_otlp_metric_exporter,
    "logs": create_otlp_log_exporter,
}

_FILE_EXPORTERS = {
    "traces": FileSpanExporter,
    "metrics": FileMetricExporter,
    "logs": FileLogExporter,
}


def create_exporter(
    cfg: CommonConfig,
    headers: dict[str, str] | None = None,
    output_file: str | None = None,
    console: bool = False,
):
    """Exporter for cfg.SIGNAL: JSONL file, console, or OTLP (the default)."""
    if output_file:
        return _FILE_EXPORTERS[cfg.SIGNAL](output_file)
    if console:
        return create_console_exporter(cfg.SIGNAL)
    return _OTLP_FACTORIES[cfg.SIGNAL](cfg, headers)


__all__ = [
    "create_exporter",
    "create_otlp_trace_exporter",
    "create_otlp_metric_exporter",
    "create_otlp_log_exporter",
    "ExporterConfigError",
    "FileSpanExporter",
    "FileMetricExporter",
    "FileLogExporter",
    "create_console_exporter",
]
