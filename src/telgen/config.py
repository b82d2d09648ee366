"""
Configuration for the telemetry generator.

Settings are resolved in three layers: dataclass defaults, an optional YAML file
(--config), then command-line flags. Common settings live at the top level of the
YAML file; signal settings live under `traces:`, `metrics:` and `logs:` sections.

Marker attributes use a configurable namespace. Set VENDOR (e.g. "acme") to emit
acme.mock.data / acme.sensitive.data instead of the default telgen.* keys.
"""

import copy
import json
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, ClassVar

import yaml

from .attributes.mock_data import is_template
from .defaults import (
    DEFAULT_GRPC_ENDPOINT,
    DEFAULT_HTTP_ENDPOINT,
    DEFAULT_SERVICE_NAME,
    DEFAULT_SPAN_DURATION,
)
from .validators.otel_validator import (
    ValidationError,
    parse_aggregation_temporality,
    parse_metric_type,
    parse_severity,
    parse_status_code,
    validate_span_id,
    validate_trace_id,
)


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or fails validation."""


def _get_attr_prefix() -> str:
    """Marker attribute namespace (e.g. telgen, acme). Default: telgen."""
    return (os.environ.get("VENDOR") or "telgen").strip().lower() or "telgen"


# Module-level config; read from env at import time so CLI and tests can override via env.
ATTR_PREFIX = _get_attr_prefix()

SIGNAL_SECTIONS = ("traces", "metrics", "logs")


def attr(suffix: str) -> str:
    """Return full attribute name with configured prefix (e.g. attr('mock.data') -> 'telgen.mock.data')."""
    if not suffix:
        return ATTR_PREFIX
    return f"{ATTR_PREFIX}.{suffix}" if ATTR_PREFIX else suffix


def mock_data_attr() -> str:
    """Attribute key listing mock-expanded keys."""
    return attr("mock.data")


def sensitive_data_attr() -> str:
    """Attribute key listing sensitive keys present in a record."""
    return attr("sensitive.data")


def mock_data_header() -> str:
    """Header name listing mock-expanded header keys."""
    return f"X-{mock_data_attr()}"


def load_yaml(path: Path, default: Any = None) -> Any:
    """Load YAML file; return default on missing file, raise ConfigError on parse error."""
    if default is None:
        default = {}
    if not path.exists():
        return default
    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"error reading config file {path}: {e}") from e
    return data if isinstance(data, dict) else default


_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: Any) -> float:
    """
    Parse a duration into seconds.

    Accepts numbers (seconds) and strings such as "5s", "1m30s", "250ms", "123us".
    """
    if isinstance(value, bool):
        raise ConfigError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        raise ConfigError(f"invalid duration: {value!r}")
    text = value.strip()
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        pass
    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise ConfigError(f"invalid duration: {value!r}")
    return total


def format_duration(seconds: float) -> str:
    """Render seconds the way durations are written in config files."""
    if seconds == 0:
        return "0s"
    if seconds < 1e-3:
        return f"{seconds * 1e6:g}us"
    if seconds < 1:
        return f"{seconds * 1e3:g}ms"
    return f"{seconds:g}s"


def parse_bool(value: Any) -> bool:
    """Parse a YAML/CLI boolean."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off", ""):
            return False
    raise ConfigError(f"invalid boolean: {value!r}")


def split_comma_separated(text: str) -> list[str]:
    """Split on commas, ignoring commas inside double quotes."""
    result: list[str] = []
    current: list[str] = []
    in_quotes = False
    for ch in text:
        if ch == '"':
            in_quotes = not in_quotes
        if ch == "," and not in_quotes:
            result.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    if current:
        result.append("".join(current).strip())
    return result


def _coerce_flag_value(raw: str) -> Any:
    if raw == "true":
        return True
    if raw == "false":
        return False
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        pass
    if len(raw) >= 2 and raw[0] == '"' and raw[-1] == '"':
        return raw[1:-1]
    return raw


def parse_key_values(text: str) -> dict[str, Any]:
    """
    Parse a key/value flag value.

    Accepts a JSON object ('{"a": 1}') or comma-separated pairs
    ('a=1,b="x,y",c=true'). Values become bool, int, float or str.
    """
    text = text.strip()
    if not text:
        return {}
    if text.startswith("{"):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"invalid JSON for attributes: {e}") from e
        if not isinstance(parsed, dict):
            raise ConfigError("invalid JSON for attributes: expected an object")
        return parsed
    result: dict[str, Any] = {}
    for pair in split_comma_separated(text):
        if not pair:
            continue
        key, sep, raw = pair.partition("=")
        if not sep:
            raise ConfigError(
                f'value should be in the format key="value", key=true or key=123: {pair!r}'
            )
        result[key.strip()] = _coerce_flag_value(raw.strip())
    return result


def flatten_map(values: Mapping[Any, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested mappings into dotted keys; leaf values must be None, str, bool, int or float."""
    out: dict[str, Any] = {}
    for k, v in values.items():
        if not isinstance(k, str):
            raise ConfigError(f"unsupported non-string map key: {k!r} (type {type(k).__name__})")
        key = f"{prefix}.{k}" if prefix else k
        if isinstance(v, Mapping):
            out.update(flatten_map(v, key))
        elif v is None or isinstance(v, (str, bool, int, float)):
            out[key] = v
        else:
            raise ConfigError(
                f"unsupported attribute value type for key {key!r}: {type(v).__name__}"
            )
    return out


def setting(key: str, default: Any, help: str = "", kind: str | None = None) -> Any:
    """Declare a config field bound to a dashed YAML/CLI key."""
    if kind is None:
        kind = {bool: "bool", int: "int", float: "float", str: "str", dict: "kv", list: "list"}[
            type(default)
        ]
    metadata = {"key": key, "help": help, "kind": kind}
    if isinstance(default, (dict, list)):
        return field(default_factory=lambda: copy.deepcopy(default), metadata=metadata)
    return field(default=default, metadata=metadata)


def _coerce(kind: str, key: str, value: Any, current: Any) -> Any:
    try:
        if kind == "bool":
            return parse_bool(value)
        if kind == "int":
            if isinstance(value, bool):
                raise ValueError(value)
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(value)
            return int(value)
        if kind == "float":
            if isinstance(value, bool):
                raise ValueError(value)
            return float(value)
        if kind == "duration":
            return parse_duration(value)
        if kind == "str":
            if value is None:
                return ""
            if isinstance(value, (dict, list)):
                raise ValueError(value)
            return str(value)
        if kind == "kv":
            merged = dict(current)
            items = value if isinstance(value, list) else [value]
            for item in items:
                if item is None:
                    continue
                if isinstance(item, Mapping):
                    merged.update(item)
                elif isinstance(item, str):
                    merged.update(parse_key_values(item))
                else:
                    raise ValueError(item)
            return merged
        if kind == "list":
            if value is None:
                return []
            items = value if isinstance(value, list) else [value]
            out: list[str] = []
            for item in items:
                out.extend(p for p in split_comma_separated(str(item)) if p)
            return out
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid value for {key!r}: {value!r}") from e
    raise ConfigError(f"unknown setting kind {kind!r} for {key!r}")


@dataclass
class CommonConfig:
    """Settings shared by every signal."""

    SIGNAL: ClassVar[str] = ""

    workers: int = setting("workers", 1, "Number of workers (threads) to run")
    rate: float = setting(
        "rate", 1.0, "Records per second each worker should generate. 0 means no throttling"
    )
    duration: float = setting(
        "duration", 0.0, "For how long to run the test (e.g. 5s, 1m). 0 uses the count", "duration"
    )
    interval: float = setting("interval", 1.0, "Reporting interval (e.g. 1s)", "duration")

    endpoint: str = setting(
        "otlp-endpoint", "", "Destination endpoint for exporting logs, metrics and traces"
    )
    insecure: bool = setting("otlp-insecure", True, "Disable transport security for the exporter")
    insecure_skip_verify: bool = setting(
        "otlp-insecure-skip-verify", True, "Skip server certificate verification"
    )
    use_http: bool = setting("otlp-http", True, "Use the HTTP exporter instead of gRPC")
    http_path: str = setting("otlp-http-url-path", "", "URL path for the HTTP OTLP exporter")
    headers: dict[str, Any] = setting(
        "otlp-header", {}, 'Custom OTLP header (key="value"). Repeat for multiple headers'
    )
    resource_attributes: dict[str, Any] = setting(
        "otlp-attributes", {}, 'Custom resource attribute (key="value"). Repeatable'
    )
    telemetry_attributes: dict[str, Any] = setting(
        "telemetry-attributes", {}, 'Custom telemetry attribute (key="value"). Repeatable'
    )
    service_name: str = setting("service", DEFAULT_SERVICE_NAME, "Service name to use")
    sensitive_data: list[str] = setting(
        "sensitive-data", [], "Sensitive attribute or header keys (comma-separated or repeatable)"
    )

    ca_file: str = setting("ca-cert", "", "Trusted CA to verify the server certificate")
    mtls: bool = setting("mtls", False, "Require client authentication (mTLS)")
    client_cert_file: str = setting("client-cert", "", "Client certificate file for mTLS")
    client_key_file: str = setting("client-key", "", "Client private key file for mTLS")

    log_level: str = setting("log-level", "info", "Log level: debug, info, warn, error")
    mock_data: bool = setting("mock-data", True, "Expand {{...}} mock-data templates")
    mock_seed: int = setting("mock-seed", 0, "Seed for mock data generation (0 = random)")
    terminal_output: bool = setting(
        "terminal-output", True, "Human console output instead of JSON logs"
    )

    @classmethod
    def settings(cls) -> list:
        """Dataclass fields bound to YAML/CLI keys, in declaration order."""
        return [f for f in fields(cls) if "key" in f.metadata]

    @classmethod
    def create(
        cls,
        config_path: str | Path | None = None,
        overrides: Mapping[str, Any] | None = None,
    ):
        """Build a config from defaults, an optional YAML file and flag overrides (dashed keys)."""
        cfg = cls()
        if config_path:
            path = Path(config_path)
            if not path.is_file():
                raise ConfigError(f"config file not found: {path}")
            data = load_yaml(path)
            cfg.apply({k: v for k, v in data.items() if k not in SIGNAL_SECTIONS})
            section = data.get(cls.SIGNAL)
            if isinstance(section, Mapping):
                cfg.apply(section)
        if overrides:
            cfg.apply(overrides)
        return cfg

    def apply(self, values: Mapping[str, Any]) -> None:
        """Apply dashed-key values onto this config; unknown keys are ignored."""
        by_key = {f.metadata["key"]: f for f in self.settings()}
        for key, value in values.items():
            f = by_key.get(key)
            if f is None:
                continue
            current = getattr(self, f.name)
            setattr(self, f.name, _coerce(f.metadata["kind"], key, value, current))

    def get_endpoint(self) -> str:
        """Configured endpoint, or the protocol's default collector address."""
        if self.endpoint:
            return self.endpoint
        return DEFAULT_HTTP_ENDPOINT if self.use_http else DEFAULT_GRPC_ENDPOINT

    def init_attributes(self) -> None:
        """Flatten nested attribute and header maps into dotted keys."""
        try:
            self.resource_attributes = flatten_map(self.resource_attributes)
            self.telemetry_attributes = flatten_map(self.telemetry_attributes)
            self.headers = flatten_map(self.headers)
        except ConfigError as e:
            raise ConfigError(f"failed to flatten attributes: {e}") from e

    def validate(self) -> None:
        """Validate settings shared by every signal."""
        if self.workers < 1:
            raise ConfigError("`workers` must be at least 1")
        if self.rate < 0:
            raise ConfigError("`rate` must not be negative")
        if self.duration < 0:
            raise ConfigError("`duration` must not be negative")
        if self.interval <= 0:
            raise ConfigError("`interval` must be greater than 0")
        if self.mtls and not (self.client_cert_file and self.client_key_file):
            raise ConfigError("mTLS requires both `client-cert` and `client-key`")

    def _validate_count(self, count: int) -> None:
        if self.duration <= 0 and count <= 0:
            raise ConfigError(f"either `{self.SIGNAL}` or `duration` must be greater than 0")

    def _validate_ids(self, trace_id: str, span_id: str) -> None:
        try:
            if trace_id:
                validate_trace_id(trace_id)
            if span_id:
                validate_span_id(span_id)
        except ValidationError as e:
            raise ConfigError(str(e)) from e


@dataclass
class LogsConfig(CommonConfig):
    """Settings for the logs subcommand."""

    SIGNAL: ClassVar[str] = "logs"

    http_path: str = setting("otlp-http-url-path", "/v1/logs", "URL path for the HTTP OTLP exporter")
    count: int = setting("logs", 1, "Number of logs to generate per worker (ignored with duration)")
    body: str = setting("body", "Log message", "Body of the log; mock-data templates supported")
    severity_text: str = setting("severity-text", "Info", "Severity text (e.g. Info, Debug)")
    severity_number: str = setting(
        "severity-number", "9", 'Severity number (1-24) or a template like "{{Number 1 24}}"'
    )
    trace_id: str = setting("trace-id", "", "TraceID of the log (32 hex chars)")
    span_id: str = setting("span-id", "", "SpanID of the log (16 hex chars)")

    def validate(self) -> None:
        super().validate()
        self._validate_count(self.count)
        self._validate_ids(self.trace_id, self.span_id)
        # Templated severity numbers are resolved per record.
        if not (self.mock_data and is_template(self.severity_number)):
            try:
                number = int(self.severity_number)
            except ValueError as e:
                raise ConfigError(
                    f"severity-number must be an integer, got {self.severity_number!r}"
                ) from e
            try:
                parse_severity(self.severity_text, number)
            except ValidationError as e:
                raise ConfigError(str(e)) from e


@dataclass
class MetricsConfig(CommonConfig):
    """Settings for the metrics subcommand."""

    SIGNAL: ClassVar[str] = "metrics"

    http_path: str = setting(
        "otlp-http-url-path", "/v1/metrics", "URL path for the HTTP OTLP exporter"
    )
    count: int = setting(
        "metrics", 1, "Number of metrics to generate per worker (ignored with duration)"
    )
    metric_name: str = setting("metric-name", "gen", "Name of the generated metric")
    metric_type: str = setting("metric-type", "Gauge", "Metric type: Gauge, Sum, Histogram")
    aggregation_temporality: str = setting(
        "aggregation-temporality", "cumulative", "Aggregation temporality: delta, cumulative"
    )
    trace_id: str = setting("trace-id", "", "TraceID to use as exemplar")
    span_id: str = setting("span-id", "", "SpanID to use as exemplar")

    def validate(self) -> None:
        super().validate()
        self._validate_count(self.count)
        self._validate_ids(self.trace_id, self.span_id)
        if not self.metric_name:
            raise ConfigError("`metric-name` must not be empty")
        try:
            parse_metric_type(self.metric_type)
            parse_aggregation_temporality(self.aggregation_temporality)
        except ValidationError as e:
            raise ConfigError(str(e)) from e


@dataclass
class TracesConfig(CommonConfig):
    """Settings for the traces subcommand."""

    SIGNAL: ClassVar[str] = "traces"

    http_path: str = setting(
        "otlp-http-url-path", "/v1/traces", "URL path for the HTTP OTLP exporter"
    )
    count: int = setting(
        "traces", 1, "Number of traces to generate per worker (ignored with duration)"
    )
    child_spans: int = setting("child-spans", 1, "Number of child spans per trace")
    marshal: bool = setting(
        "marshal", False, "Propagate trace context through a header carrier between spans"
    )
    status_code: str = setting("status-code", "0", "Span status: Unset, Error, Ok or 0/1/2")
    batch: bool = setting("batch", True, "Export each trace in one call")
    load_size: int = setting("size", 0, "Minimum size in MB of string data per trace")
    span_duration: float = setting(
        "span-duration", DEFAULT_SPAN_DURATION, "Duration of each span (e.g. 123us)", "duration"
    )

    def validate(self) -> None:
        super().validate()
        self._validate_count(self.count)
        if self.child_spans < 0:
            raise ConfigError("`child-spans` must not be negative")
        if self.load_size < 0:
            raise ConfigError("`size` must not be negative")
        if self.span_duration < 0:
            raise ConfigError("`span-duration` must not be negative")
        try:
            parse_status_code(self.status_code)
        except ValidationError as e:
            raise ConfigError(str(e)) from e


def non_default_values(cfg: CommonConfig) -> list[tuple[str, Any]]:
    """Return (key, value) pairs for settings that differ from their defaults."""
    defaults = type(cfg)()
    changed: list[tuple[str, Any]] = []
    for f in cfg.settings():
        value = getattr(cfg, f.name)
        if value == getattr(defaults, f.name):
            continue
        if f.metadata["kind"] == "duration":
            value = format_duration(value)
        changed.append((f.metadata["key"], value))
    return changed
