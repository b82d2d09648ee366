"""
Console exporters for debugging and development.

Prints telemetry to stdout for quick verification.
"""

from opentelemetry.sdk._logs.export import ConsoleLogRecordExporter
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter
from opentelemetry.sdk.trace.export import ConsoleSpanExporter

_CONSOLE_EXPORTERS = {
    "traces": ConsoleSpanExporter,
    "metrics": ConsoleMetricExporter,
    "logs": ConsoleLogRecordExporter,
}


def create_console_exporter(signal: str):
    """Console exporter for one signal (traces, metrics or logs)."""
    try:
        return _CONSOLE_EXPORTERS[signal]()
    except KeyError:
        raise ValueError(f"unknown signal {signal!r}") from None
