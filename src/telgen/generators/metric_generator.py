"""
Generate metric data points and export them directly through a MetricExporter.

One point per iteration under the configured metric name:
- Gauge: value is the iteration index
- Sum: monotonic, value is the iteration index, with the configured temporality
- Histogram: random bucket counts over HISTOGRAM_BOUNDS

Cumulative points share the worker's start time; delta points start where the
previous point ended.
"""

import random
import time
from functools import partial

from opentelemetry.sdk.metrics import Exemplar
from opentelemetry.sdk.metrics.export import (
    AggregationTemporality,
    Gauge,
    Histogram,
    HistogramDataPoint,
    Metric,
    MetricExporter,
    MetricsData,
    NumberDataPoint,
    ResourceMetrics,
    ScopeMetrics,
    Sum,
)
from opentelemetry.sdk.util.instrumentation import InstrumentationScope
from structlog.typing import FilteringBoundLogger

from .. import __version__
from ..attributes.mock_data import MockTemplateEngine
from ..config import MetricsConfig
from ..defaults import HISTOGRAM_BOUNDS
from ..engine.coordinator import run_workers
from ..validators.otel_validator import (
    MetricType,
    parse_aggregation_temporality,
    parse_metric_type,
)
from .worker import SignalWorker

SCOPE_NAME = "telgen"

# Upper bound of the random count drawn for each histogram bucket.
MAX_BUCKET_COUNT = 10


def exemplars_from_config(cfg: MetricsConfig) -> list[Exemplar]:
    """One exemplar (value 1, now) when a trace id or span id is configured."""
    if not cfg.trace_id and not cfg.span_id:
        return []
    return [
        Exemplar(
            filtered_attributes={},
            value=1,
            time_unix_nano=time.time_ns(),
            trace_id=int(cfg.trace_id, 16) if cfg.trace_id else None,
            span_id=int(cfg.span_id, 16) if cfg.span_id else None,
        )
    ]


def random_histogram(rng: random.Random, bounds: tuple = HISTOGRAM_BOUNDS) -> dict:
    """
    Random bucket counts over bounds with consistent count/sum/min/max.

    Each observation is counted at its bucket's upper bound (the last bound for
    the overflow bucket), so sum, min and max always agree with the buckets.
    """
    bucket_counts = [rng.randint(0, MAX_BUCKET_COUNT) for _ in range(len(bounds) + 1)]
    if not any(bucket_counts):
        bucket_counts[rng.randrange(len(bucket_counts))] = 1
    values = [float(b) for b in bounds] + [float(bounds[-1])]
    filled = [i for i, n in enumerate(bucket_counts) if n]
    return {
        "count": sum(bucket_counts),
        "sum": sum(n * values[i] for i, n in enumerate(bucket_counts)),
        "bucket_counts": bucket_counts,
        "explicit_bounds": [float(b) for b in bounds],
        "min": values[filled[0]],
        "max": values[filled[-1]],
    }


class MetricWorker(SignalWorker):
    """Emits one metric data point per iteration."""

    signal = "metrics"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.metric_type = parse_metric_type(self.cfg.metric_type)
        self.temporality = parse_aggregation_temporality(self.cfg.aggregation_temporality)
        self.scope = InstrumentationScope(SCOPE_NAME, __version__)
        seed = self.cfg.mock_seed + self.index if self.cfg.mock_seed else None
        self.rng = random.Random(seed)
        self.start_time = time.time_ns()

    def _point_times(self) -> tuple[int, int]:
        now = time.time_ns()
        start = self.start_time
        if self.temporality == AggregationTemporality.DELTA:
            self.start_time = now
        return start, now

    def build_metric(self, iteration: int) -> Metric:
        attrs = self.telemetry.build()
        start, now = self._point_times()
        exemplars = exemplars_from_config(self.cfg)

        if self.metric_type == MetricType.HISTOGRAM:
            data = Histogram(
                data_points=[
                    HistogramDataPoint(
                        attributes=attrs,
                        start_time_unix_nano=start,
                        time_unix_nano=now,
                        exemplars=exemplars,
                        **random_histogram(self.rng),
                    )
                ],
                aggregation_temporality=self.temporality,
            )
        else:
            point = NumberDataPoint(
                attributes=attrs,
                start_time_unix_nano=start,
                time_unix_nano=now,
                value=iteration,
                exemplars=exemplars,
            )
            if self.metric_type == MetricType.SUM:
                data = Sum(
                    data_points=[point],
                    aggregation_temporality=self.temporality,
                    is_monotonic=True,
                )
            else:
                data = Gauge(data_points=[point])

        return Metric(name=self.cfg.metric_name, description="", unit="", data=data)

    def build_metrics_data(self, iteration: int) -> MetricsData:
        return MetricsData(
            resource_metrics=[
                ResourceMetrics(
                    resource=self.resource,
                    scope_metrics=[
                        ScopeMetrics(
                            scope=self.scope,
                            metrics=[self.build_metric(iteration)],
                            schema_url="",
                        )
                    ],
                    schema_url="",
                )
            ]
        )

    def emit(self, iteration: int) -> None:
        self.export(self.build_metrics_data(iteration))


def run(
    cfg: MetricsConfig,
    exporter: MetricExporter,
    mock_engine: MockTemplateEngine | None = None,
    logger: FilteringBoundLogger | None = None,
) -> int:
    """Generate metrics with cfg.workers workers; return the number exported."""
    make_worker = partial(
        MetricWorker, cfg=cfg, exporter=exporter, mock_engine=mock_engine, logger=logger
    )
    return run_workers(cfg, make_worker, exporter, logger)
