"""
Build typed telemetry attributes from configured attribute maps.

Each record gets a fresh attribute dict so mock-data templates can produce new
values on every call. Two marker attributes are appended last:
- <ns>.sensitive.data lists configured sensitive keys present in the map
- <ns>.mock.data lists keys whose values were expanded from templates
"""

import re
from collections.abc import Iterable, Mapping
from typing import Any, Union

from ..config import mock_data_attr, mock_data_header, sensitive_data_attr
from .mock_data import MockTemplateEngine, is_template

AttributeValue = Union[str, bool, int, float]

_INT_RE = re.compile(r"[-+]?\d+")
_FLOAT_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def coerce_expanded(text: str) -> AttributeValue:
    """Reinterpret an expanded template as int, then bool, then float, else str."""
    if _INT_RE.fullmatch(text):
        return int(text)
    lowered = text.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if _FLOAT_RE.fullmatch(text):
        return float(text)
    return text


def expand_attributes(
    raw: Mapping[str, Any],
    mock_engine: MockTemplateEngine | None = None,
) -> tuple[dict[str, AttributeValue], list[str]]:
    """
    Convert a flat attribute map into typed values.

    Returns the attributes and the keys that were expanded from templates.
    None values are dropped. Raises MockTemplateError on a bad template.
    """
    attrs: dict[str, AttributeValue] = {}
    expanded: list[str] = []
    for key, value in raw.items():
        if value is None:
            continue
        if mock_engine is not None and is_template(value):
            attrs[key] = coerce_expanded(mock_engine.expand(value))
            expanded.append(key)
        elif isinstance(value, (str, bool, int, float)):
            attrs[key] = value
    return attrs, expanded


def with_mock_marker(
    attrs: Mapping[str, AttributeValue], expanded_keys: Iterable[str]
) -> dict[str, AttributeValue]:
    """Return attrs with the mock marker appended when any key was expanded."""
    result = dict(attrs)
    keys = list(expanded_keys)
    if keys:
        result.pop(mock_data_attr(), None)
        result[mock_data_attr()] = ",".join(keys)
    return result


def sensitive_marker(raw: Mapping[str, Any], sensitive_keys: Iterable[str]) -> str:
    """Comma-joined sensitive keys present in raw, in the order they were configured."""
    seen: set[str] = set()
    present: list[str] = []
    for key in sensitive_keys:
        if key in raw and key not in seen:
            present.append(key)
            seen.add(key)
    return ",".join(present)


class AttributeProcessor:
    """
    Builds attributes for one configured map (resource or telemetry).

    The sensitive marker is computed once here; expansion happens on every build().
    """

    def __init__(
        self,
        raw: Mapping[str, Any],
        sensitive_keys: Iterable[str] = (),
        mock_engine: MockTemplateEngine | None = None,
        defaults: Mapping[str, AttributeValue] | None = None,
    ):
        self.raw = dict(raw)
        self.mock_engine = mock_engine
        self.defaults = dict(defaults or {})
        self.sensitive = sensitive_marker(self.raw, sensitive_keys)

    def build(self) -> dict[str, AttributeValue]:
        """Build one fresh attribute set, markers last."""
        attrs, expanded = self.build_without_mock_marker()
        return with_mock_marker(attrs, expanded)

    def build_without_mock_marker(self) -> tuple[dict[str, AttributeValue], list[str]]:
        """Build attributes with the sensitive marker; return them with the expanded keys."""
        attrs, expanded = expand_attributes(self.raw, self.mock_engine)
        for key, value in self.defaults.items():
            attrs.setdefault(key, value)
        if self.sensitive:
            attrs.pop(sensitive_data_attr(), None)
            attrs[sensitive_data_attr()] = self.sensitive
        return attrs, expanded


def build_attributes(
    raw: Mapping[str, Any],
    sensitive_keys: Iterable[str] = (),
    mock_engine: MockTemplateEngine | None = None,
) -> dict[str, AttributeValue]:
    """Build one attribute set from raw, with sensitive and mock markers."""
    return AttributeProcessor(raw, sensitive_keys, mock_engine).build()


def resource_processor(
    raw: Mapping[str, Any],
    service_name: str,
    sensitive_keys: Iterable[str] = (),
    mock_engine: MockTemplateEngine | None = None,
) -> AttributeProcessor:
    """Processor for resource attributes; service.name defaults to service_name."""
    defaults = {"service.name": service_name} if service_name else {}
    return AttributeProcessor(raw, sensitive_keys, mock_engine, defaults=defaults)


def build_resource_attributes(
    raw: Mapping[str, Any],
    service_name: str,
    sensitive_keys: Iterable[str] = (),
    mock_engine: MockTemplateEngine | None = None,
) -> dict[str, AttributeValue]:
    """Build resource attributes; always carries exactly one service.name."""
    return resource_processor(raw, service_name, sensitive_keys, mock_engine).build()


def build_headers(
    headers: Mapping[str, Any],
    mock_engine: MockTemplateEngine | None = None,
) -> dict[str, str]:
    """Build exporter headers, expanding templates and adding the X-<ns>.mock.data header."""
    result: dict[str, str] = {}
    expanded: list[str] = []
    for key, value in headers.items():
        if value is None:
            continue
        if mock_engine is not None and is_template(value):
            result[key] = mock_engine.expand(value)
            expanded.append(key)
        elif isinstance(value, bool):
            result[key] = "true" if value else "false"
        else:
            result[key] = str(value)
    if expanded:
        result[mock_data_header()] = ",".join(expanded)
    return result
