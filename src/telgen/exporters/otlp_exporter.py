"""
OTLP exporters for traces, metrics, and logs.

Provides factory functions for creating OTLP exporters from a signal config.
Supports both HTTP and gRPC protocols, with optional TLS and mTLS.
"""

from pathlib import Path
from typing import Any

from ..config import CommonConfig, ConfigError
from ..logger import get_logger

logger = get_logger("exporter")


class ExporterConfigError(ConfigError):
    """TLS material is missing or incomplete."""


def _strip_scheme(endpoint: str) -> str:
    return endpoint.replace("http://", "").replace("https://", "").rstrip("/")


def _read_file(path: str, what: str) -> bytes:
    p = Path(path)
    if not p.is_file():
        raise ExporterConfigError(f"{what} file not found: {path}")
    try:
        return p.read_bytes()
    except OSError as e:
        raise ExporterConfigError(f"failed to read {what} file {path}: {e}") from e


def check_tls_files(cfg: CommonConfig) -> None:
    """Fail early on missing CA/client cert/key files or an incomplete mTLS setup."""
    if cfg.mtls and not (cfg.client_cert_file and cfg.client_key_file):
        raise ExporterConfigError("mTLS requires both `client-cert` and `client-key`")
    for path, what in (
        (cfg.ca_file, "CA certificate"),
        (cfg.client_cert_file, "client certificate"),
        (cfg.client_key_file, "client key"),
    ):
        if path and not Path(path).is_file():
            raise ExporterConfigError(f"{what} file not found: {path}")


def _warn_skip_verify(cfg: CommonConfig) -> None:
    if not cfg.insecure and cfg.insecure_skip_verify and not cfg.ca_file:
        logger.warning(
            "server certificate verification cannot be disabled, "
            "the system trust store is used; pass --ca-cert to trust a private CA"
        )


def http_endpoint(cfg: CommonConfig) -> str:
    """Full OTLP/HTTP URL: scheme by `insecure`, host from the endpoint, signal path."""
    scheme = "http" if cfg.insecure else "https"
    path = cfg.http_path or f"/v1/{cfg.SIGNAL}"
    if not path.startswith("/"):
        path = f"/{path}"
    return f"{scheme}://{_strip_scheme(cfg.get_endpoint())}{path}"


def grpc_endpoint(cfg: CommonConfig) -> str:
    return _strip_scheme(cfg.get_endpoint())


def _http_kwargs(cfg: CommonConfig, headers: dict[str, str] | None) -> dict[str, Any]:
    check_tls_files(cfg)
    kwargs: dict[str, Any] = {"endpoint": http_endpoint(cfg), "headers": headers or None}
    if not cfg.insecure:
        _warn_skip_verify(cfg)
        if cfg.ca_file:
            kwargs["certificate_file"] = cfg.ca_file
        if cfg.client_cert_file and cfg.client_key_file:
            kwargs["client_certificate_file"] = cfg.client_cert_file
            kwargs["client_key_file"] = cfg.client_key_file
    logger.info("starting HTTP exporter", endpoint=kwargs["endpoint"])
    return kwargs


def _grpc_kwargs(cfg: CommonConfig, headers: dict[str, str] | None) -> dict[str, Any]:
    check_tls_files(cfg)
    # gRPC metadata keys must be lowercase.
    metadata = {k.lower(): v for k, v in (headers or {}).items()} or None
    kwargs: dict[str, Any] = {
        "endpoint": grpc_endpoint(cfg),
        "headers": metadata,
        "insecure": cfg.insecure,
    }
    if not cfg.insecure:
        import grpc

        _warn_skip_verify(cfg)
        kwargs["credentials"] = grpc.ssl_channel_credentials(
            root_certificates=_read_file(cfg.ca_file, "CA certificate") if cfg.ca_file else None,
            private_key=(
                _read_file(cfg.client_key_file, "client key") if cfg.client_key_file else None
            ),
            certificate_chain=(
                _read_file(cfg.client_cert_file, "client certificate")
                if cfg.client_cert_file
                else None
            ),
        )
    logger.info("starting gRPC exporter", endpoint=kwargs["endpoint"])
    return kwargs


def create_otlp_trace_exporter(cfg: CommonConfig, headers: dict[str, str] | None = None):
    """
    Create an OTLP trace exporter.

    Args:
        cfg: Signal config (endpoint, protocol, TLS settings)
        headers: Optional headers to include

    Returns:
        Configured SpanExporter
    """
    if not cfg.use_http:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        return OTLPSpanExporter(**_grpc_kwargs(cfg, headers))
    else:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (  # type: ignore[assignment]
            OTLPSpanExporter,
        )

        return OTLPSpanExporter(**_http_kwargs(cfg, headers))


def preferred_temporality(cfg: CommonConfig) -> dict[type, Any]:
    """Every instrument kind mapped to the configured aggregation temporality."""
    from opentelemetry.sdk.metrics import (
        Counter,
        Histogram,
        ObservableCounter,
        ObservableGauge,
        ObservableUpDownCounter,
        UpDownCounter,
    )

    from ..validators.otel_validator import parse_aggregation_temporality

    temporality = parse_aggregation_temporality(
        getattr(cfg, "aggregation_temporality", "cumulative")
    )
    return {
        kind: temporality
        for kind in (
            Counter,
            UpDownCounter,
            Histogram,
            ObservableCounter,
            ObservableUpDownCounter,
            ObservableGauge,
        )
    }


def create_otlp_metric_exporter(cfg: CommonConfig, headers: dict[str, str] | None = None):
    """
    Create an OTLP metric exporter.

    Args:
        cfg: Metrics config (endpoint, protocol, TLS settings, temporality)
        headers: Optional headers to include

    Returns:
        Configured MetricExporter
    """
    if not cfg.use_http:
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

        return OTLPMetricExporter(
            preferred_temporality=preferred_temporality(cfg), **_grpc_kwargs(cfg, headers)
        )
    else:
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import (  # type: ignore[assignment]
            OTLPMetricExporter,
        )

        return OTLPMetricExporter(
            preferred_temporality=preferred_temporality(cfg), **_http_kwargs(cfg, headers)
        )


def create_otlp_log_exporter(cfg: CommonConfig, headers: dict[str, str] | None = None):
    """
    Create an OTLP log exporter.

    Args:
        cfg: Logs config (endpoint, protocol, TLS settings)
        headers: Optional headers to include

    Returns:
        Configured LogRecordExporter
    """
    if not cfg.use_http:
        from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter

        return OTLPLogExporter(**_grpc_kwargs(cfg, headers))
    else:
        from opentelemetry.exporter.otlp.proto.http._log_exporter import (  # type: ignore[assignment]
            OTLPLogExporter,
        )

        return OTLPLogExporter(**_http_kwargs(cfg, headers))
