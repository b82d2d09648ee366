"""
telgen - synthetic OpenTelemetry telemetry generator.

This package generates OpenTelemetry telemetry (traces, metrics, logs) at a
configurable rate and volume, with optional mock-data templates for attribute
values, and exports it over OTLP gRPC or HTTP.
"""

__version__ = "1.0.0"
