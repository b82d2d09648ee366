"""
Generate traces and export them directly through a SpanExporter.

Each iteration produces one trace:
  lets-go (CLIENT)
  ├── okey-dokey-0 (SERVER)
  ├── okey-dokey-1 (SERVER)
  └── ...

Children are laid end to end starting one span duration after the parent, so
a trace with N children spans (N + 1) * span_duration. With `marshal` the
parent context crosses a W3C traceparent header carrier before each child is
started. With `size` the parent carries `size` padding attributes of 1 MiB.
"""

import time
from functools import partial
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.trace import ReadableSpan, SpanLimits, SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import SpanExporter
from opentelemetry.trace import SpanKind, Status, StatusCode
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator
from structlog.typing import FilteringBoundLogger

from .. import __version__
from ..attributes.mock_data import MockTemplateEngine
from ..config import TracesConfig
from ..defaults import LOAD_ATTRIBUTE_BYTES
from ..engine.coordinator import run_workers
from ..validators.otel_validator import parse_status_code
from .worker import SignalWorker

SCOPE_NAME = "telgen"
PARENT_SPAN_NAME = "lets-go"
CHILD_SPAN_PREFIX = "okey-dokey-"
FAKE_PEER_ADDR = "1.2.3.4"


class _CollectingSpanProcessor(SpanProcessor):
    """Keeps finished spans until the worker drains them for export."""

    def __init__(self):
        self._spans: list[ReadableSpan] = []

    def on_end(self, span: ReadableSpan) -> None:
        self._spans.append(span)

    def drain(self) -> list[ReadableSpan]:
        spans, self._spans = self._spans, []
        return spans

    def shutdown(self) -> None:
        self._spans = []

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True


def load_attributes(size: int) -> dict[str, str]:
    """`size` padding attributes load-0..load-<size-1> of LOAD_ATTRIBUTE_BYTES each."""
    payload = "x" * LOAD_ATTRIBUTE_BYTES
    return {f"load-{j}": payload for j in range(size)}


class TraceWorker(SignalWorker):
    """Emits one parent span and its children per iteration."""

    signal = "traces"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.status_code = parse_status_code(self.cfg.status_code)
        self.child_spans = max(1, self.cfg.child_spans)
        self.span_duration_ns = round(self.cfg.span_duration * 1e9)
        self.load = load_attributes(self.cfg.load_size)
        self.propagator = TraceContextTextMapPropagator()

        self._processor = _CollectingSpanProcessor()
        # Padding attributes can exceed the default span attribute limit.
        self.provider = TracerProvider(
            resource=self.resource,
            shutdown_on_exit=False,
            span_limits=SpanLimits(max_span_attributes=SpanLimits.UNSET),
        )
        self.provider.add_span_processor(self._processor)
        self.tracer = self.provider.get_tracer(SCOPE_NAME, __version__)

    def _set_status(self, span: Any) -> None:
        if self.status_code != StatusCode.UNSET:
            span.set_status(Status(self.status_code))

    def _child_context(self, parent: Any) -> Any:
        ctx = trace.set_span_in_context(parent)
        if not self.cfg.marshal:
            return ctx
        carrier: dict[str, str] = {}
        self.propagator.inject(carrier, context=ctx)
        return self.propagator.extract(carrier)

    def build_trace(self, start_ns: int) -> list[ReadableSpan]:
        """Record one trace starting at start_ns and return its finished spans, children first."""
        service = self.cfg.service_name
        step = self.span_duration_ns

        parent_attrs: dict[str, Any] = {
            "net.sock.peer.addr": FAKE_PEER_ADDR,
            "peer.service": f"{service}-server",
        }
        parent_attrs.update(self.load)
        parent_attrs.update(self.telemetry.build())
        parent = self.tracer.start_span(
            PARENT_SPAN_NAME,
            kind=SpanKind.CLIENT,
            attributes=parent_attrs,
            start_time=start_ns,
        )

        ctx = self._child_context(parent)
        child_start = start_ns + step
        for n in range(self.child_spans):
            child_attrs: dict[str, Any] = {
                "net.sock.peer.addr": FAKE_PEER_ADDR,
                "peer.service": f"{service}-client",
            }
            child_attrs.update(self.telemetry.build())
            child = self.tracer.start_span(
                f"{CHILD_SPAN_PREFIX}{n}",
                context=ctx,
                kind=SpanKind.SERVER,
                attributes=child_attrs,
                start_time=child_start,
            )
            self._set_status(child)
            child.end(end_time=child_start + step)
            child_start += step

        self._set_status(parent)
        parent.end(end_time=child_start)
        return self._processor.drain()

    def emit(self, iteration: int) -> None:
        spans = self.build_trace(time.time_ns())
        if self.cfg.batch:
            self.export(spans)
        else:
            for span in spans:
                self.export([span])

    def close(self) -> None:
        self.provider.shutdown()


def run(
    cfg: TracesConfig,
    exporter: SpanExporter,
    mock_engine: MockTemplateEngine | None = None,
    logger: FilteringBoundLogger | None = None,
) -> int:
    """Generate traces with cfg.workers workers; return the number of traces exported."""
    make_worker = partial(
        TraceWorker, cfg=cfg, exporter=exporter, mock_engine=mock_engine, logger=logger
    )
    return run_workers(cfg, make_worker, exporter, logger)
