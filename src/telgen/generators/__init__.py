"""Telemetry generators for traces, metrics, and logs."""

from .log_generator import LogWorker
from .metric_generator import MetricWorker
from .trace_generator import TraceWorker
from .worker import ExportError, SignalWorker

__all__ = [
    "SignalWorker",
    "ExportError",
    "TraceWorker",
    "MetricWorker",
    "LogWorker",
]
