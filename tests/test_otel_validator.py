"""Tests for OTEL identifier and enum validation."""

import pytest
from opentelemetry._logs import SeverityNumber
from opentelemetry.sdk.metrics.export import AggregationTemporality
from opentelemetry.trace import StatusCode

from telgen.validators import (
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


def test_valid_ids_decode_to_ints() -> None:
    assert validate_trace_id("ae87dadd90e9935a4bc9660628efd569") == int(
        "ae87dadd90e9935a4bc9660628efd569", 16
    )
    assert validate_span_id("5828fa4960140870") == int("5828fa4960140870", 16)


@pytest.mark.parametrize(
    "value",
    [
        "abc",
        "zz87dadd90e9935a4bc9660628efd569",
        "",
        "0011223344556677 8899aabbccddee ",
        " 11223344556677889900aabbccddeef",
    ],
)
def test_bad_trace_ids(value: str) -> None:
    with pytest.raises(ValidationError):
        validate_trace_id(value)


def test_span_id_length_is_checked() -> None:
    with pytest.raises(ValidationError, match="16 hex characters"):
        validate_span_id("ae87dadd90e9935a4bc9660628efd569")


@pytest.mark.parametrize("value", ["00112233 4455667", "0011223344556 7\n", "0x11223344556677"])
def test_bad_span_ids(value: str) -> None:
    with pytest.raises(ValidationError, match="hex string"):
        validate_span_id(value)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("0", StatusCode.UNSET),
        ("Unset", StatusCode.UNSET),
        ("1", StatusCode.ERROR),
        ("error", StatusCode.ERROR),
        ("2", StatusCode.OK),
        ("OK", StatusCode.OK),
    ],
)
def test_status_codes(value: str, expected: StatusCode) -> None:
    assert parse_status_code(value) is expected


def test_unknown_status_code() -> None:
    with pytest.raises(ValidationError, match="status-code"):
        parse_status_code("3")


def test_severity_text_table() -> None:
    assert severity_text_from_number(1) == "Trace"
    assert severity_text_from_number(10) == "Info2"
    assert severity_text_from_number(24) == "Fatal4"


def test_empty_severity_text_is_derived() -> None:
    assert parse_severity("", 17) == ("Error", SeverityNumber.ERROR)


def test_matching_severity_passes() -> None:
    assert parse_severity("Warn3", 15) == ("Warn3", SeverityNumber.WARN3)


def test_custom_severity_text_is_not_band_checked() -> None:
    assert parse_severity("Notice", 9)[0] == "Notice"


@pytest.mark.parametrize(("text", "number"), [("Info", 0), ("Info", 25), ("Error", 9)])
def test_bad_severities(text: str, number: int) -> None:
    with pytest.raises(SeverityError):
        parse_severity(text, number)


def test_metric_types_and_temporality() -> None:
    assert parse_metric_type("histogram") is MetricType.HISTOGRAM
    assert parse_aggregation_temporality("Delta") is AggregationTemporality.DELTA
    with pytest.raises(ValidationError):
        parse_metric_type("Summary")
    with pytest.raises(ValidationError):
        parse_aggregation_temporality("both")
