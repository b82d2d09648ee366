"""Validators for generated OTEL telemetry settings."""

from .otel_validator import (
    MetricType,
    SeverityError,
    ValidationError,
    parse_aggregation_temporality,
    parse_metric_type,
    parse_severity,
    parse_status_code,
    severity_text_from_number,
    validate_span_id,
    validate_trace_id,
)

__all__ = [
    "MetricType",
    "SeverityError",
    "ValidationError",
    "parse_aggregation_temporality",
    "parse_metric_type",
    "parse_severity",
    "parse_status_code",
    "severity_text_from_number",
    "validate_span_id",
    "validate_trace_id",
]
