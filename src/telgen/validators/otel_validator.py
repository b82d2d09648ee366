"""
Validate OTEL identifiers and enumerated settings for generated telemetry.

Validates:
- Trace and span identifiers (32 and 16 hex characters)
- Span status codes (Unset, Error, Ok or 0, 1, 2)
- Log severity text and number against the OTEL severity bands
- Metric types and aggregation temporality
"""

import re
from enum import Enum

from opentelemetry._logs import SeverityNumber
from opentelemetry.sdk.metrics.export import AggregationTemporality
from opentelemetry.trace import StatusCode


class ValidationError(ValueError):
    """A setting or generated value does not satisfy OTEL constraints."""


class SeverityError(ValidationError):
    """Severity text and number are out of range or disagree."""


class MetricType(Enum):
    """Kinds of metric the generator can emit."""

    GAUGE = "Gauge"
    SUM = "Sum"
    HISTOGRAM = "Histogram"


TRACE_ID_HEX_LEN = 32
SPAN_ID_HEX_LEN = 16
_HEX = re.compile(r"[0-9a-fA-F]+")

# Six bands of four: Trace 1-4, Debug 5-8, Info 9-12, Warn 13-16, Error 17-20, Fatal 21-24.
_SEVERITY_BANDS = ("Trace", "Debug", "Info", "Warn", "Error", "Fatal")
SEVERITY_TEXT_BY_NUMBER = {
    band_index * 4 + level + 1: band + (str(level + 1) if level else "")
    for band_index, band in enumerate(_SEVERITY_BANDS)
    for level in range(4)
}


def _validate_hex_id(value: str, length: int, label: str) -> bytes:
    if len(value) != length:
        raise ValidationError(
            f"{label} must be {length} hex characters, got {len(value)} characters: {value!r}"
        )
    if not _HEX.fullmatch(value):
        raise ValidationError(f"{label} must be a hex string: {value!r}")
    return bytes.fromhex(value)


def validate_trace_id(trace_id: str) -> int:
    """Validate a 32-hex-character trace id; return it as an int."""
    return int.from_bytes(_validate_hex_id(trace_id, TRACE_ID_HEX_LEN, "trace-id"), "big")


def validate_span_id(span_id: str) -> int:
    """Validate a 16-hex-character span id; return it as an int."""
    return int.from_bytes(_validate_hex_id(span_id, SPAN_ID_HEX_LEN, "span-id"), "big")


def parse_status_code(value: str) -> StatusCode:
    """Map Unset/Error/Ok or 0/1/2 (case-insensitive) to a span status code."""
    lowered = value.strip().lower()
    if lowered in ("0", "unset", ""):
        return StatusCode.UNSET
    if lowered in ("1", "error"):
        return StatusCode.ERROR
    if lowered in ("2", "ok"):
        return StatusCode.OK
    raise ValidationError(
        f"expected `status-code` to be one of (Unset, Error, Ok) or (0, 1, 2), got {value!r} instead"
    )


def severity_text_from_number(number: int) -> str:
    """Canonical severity text for a number in [1,24]."""
    try:
        return SEVERITY_TEXT_BY_NUMBER[number]
    except KeyError:
        raise SeverityError("severity-number is out of range, the valid range is [1,24]") from None


def parse_severity(severity_text: str, severity_number: int) -> tuple[str, SeverityNumber]:
    """
    Resolve severity text and number for a log record.

    Empty text is derived from the number. Text naming one of the six bands
    (optionally with a 2-4 suffix, e.g. "Warn3") must agree with the number's band.
    """
    if not 1 <= severity_number <= 24:
        raise SeverityError("severity-number is out of range, the valid range is [1,24]")
    if not severity_text:
        severity_text = severity_text_from_number(severity_number)
    band = severity_text.rstrip("234")
    if band in _SEVERITY_BANDS:
        low = _SEVERITY_BANDS.index(band) * 4 + 1
        high = low + 3
        if not low <= severity_number <= high:
            raise SeverityError(
                f"severity text {severity_text!r} does not match severity number "
                f"{severity_number}, the valid range is [{low},{high}]"
            )
    return severity_text, SeverityNumber(severity_number)


def parse_metric_type(value: str) -> MetricType:
    """Map Gauge/Sum/Histogram (case-insensitive) to a MetricType."""
    for metric_type in MetricType:
        if metric_type.value.lower() == value.strip().lower():
            return metric_type
    raise ValidationError(
        f"unknown metric type {value!r}, expected one of (Gauge, Sum, Histogram)"
    )


def parse_aggregation_temporality(value: str) -> AggregationTemporality:
    """Map cumulative/delta (case-insensitive) to an AggregationTemporality."""
    lowered = value.strip().lower()
    if lowered == "cumulative":
        return AggregationTemporality.CUMULATIVE
    if lowered == "delta":
        return AggregationTemporality.DELTA
    raise ValidationError(
        f"unknown aggregation temporality {value!r}, expected one of (cumulative, delta)"
    )
