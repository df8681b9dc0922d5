"""Metric producer adapter over a prometheus_client CollectorRegistry.

Reads the families of a registry and converts them into the exporter's
metric data model. The instruments stay owned by prometheus_client; this
adapter only reads them.

Type mapping:
- counter -> COUNTER (the `_total` sample; `_created` is dropped)
- gauge, info, stateset, unknown -> GAUGE
- histogram -> HISTOGRAM (rebuilt from `_bucket`, `_sum`, `_count`)
- summary, gaugehistogram -> UnsupportedMetricTypeError entry

A family that cannot be converted is reported as a collection error and
skipped. If the registry itself raises while iterating, the families read
so far are kept.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry
from prometheus_client.metrics_core import Metric

from promexport.domain.errors.collection import (
    MetricCollectionError,
    UnsupportedMetricTypeError,
)
from promexport.domain.errors.metric_data import MetricDataError
from promexport.domain.models.metric_data import (
    CollectionResult,
    HistogramValue,
    MetricGroup,
    MetricKind,
    MetricPoint,
    ResourceMetrics,
)

SCOPE_NAME = "prometheus_client"

_GAUGE_LIKE_TYPES = frozenset({"gauge", "info", "stateset", "unknown"})


class PrometheusClientProducer:
    """Producer reading instruments registered with prometheus_client.

    Usage:
        registry = CollectorRegistry()
        requests = Counter("requests", "Handled requests", registry=registry)
        producer = PrometheusClientProducer(registry)
        result = await producer.collect()
    """

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the producer.

        Args:
            registry: Registry to read; defaults to the global REGISTRY.
            clock: Wall clock returning epoch seconds.
        """
        self._registry = registry if registry is not None else REGISTRY
        self._clock = clock
        self._start_time = clock()

    @property
    def name(self) -> str:
        return SCOPE_NAME

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    async def collect(self) -> CollectionResult:
        """Read every family of the registry.

        Returns:
            CollectionResult with one group of converted points.
        """
        now = self._clock()
        points: list[MetricPoint] = []
        errors: list[Exception] = []

        try:
            for family in self._registry.collect():
                try:
                    points.extend(self._convert_family(family, now))
                except MetricCollectionError as e:
                    errors.append(e)
                except MetricDataError as e:
                    errors.append(MetricCollectionError(family.name, str(e)))
        except Exception as e:
            errors.append(MetricCollectionError(SCOPE_NAME, str(e)))

        return CollectionResult(
            resource_metrics=ResourceMetrics(
                groups=(MetricGroup(points=tuple(points), scope=SCOPE_NAME),),
            ),
            errors=tuple(errors),
        )

    def _convert_family(self, family: Metric, now: float) -> list[MetricPoint]:
        if family.type == "counter":
            return self._scalar_points(family, MetricKind.COUNTER, now)
        if family.type in _GAUGE_LIKE_TYPES:
            return self._scalar_points(family, MetricKind.GAUGE, now)
        if family.type == "histogram":
            return self._histogram_points(family, now)
        raise UnsupportedMetricTypeError(family.name, family.type)

    def _scalar_points(
        self, family: Metric, kind: MetricKind, now: float
    ) -> list[MetricPoint]:
        points: list[MetricPoint] = []
        for sample in family.samples:
            if sample.name.endswith("_created"):
                continue
            # Counters are renamed to the family name; the serializer
            # appends `_total` again.
            name = family.name if kind is MetricKind.COUNTER else sample.name
            points.append(
                MetricPoint(
                    name=name,
                    kind=kind,
                    value=sample.value,
                    labels=dict(sample.labels),
                    unit=family.unit,
                    description=family.documentation,
                    start_time=self._start_time,
                    time=now,
                )
            )
        return points

    def _histogram_points(self, family: Metric, now: float) -> list[MetricPoint]:
        series: dict[tuple[tuple[str, str], ...], _HistogramSeries] = {}
        for sample in family.samples:
            key = tuple((k, v) for k, v in sample.labels.items() if k != "le")
            entry = series.setdefault(key, _HistogramSeries())
            if sample.name.endswith("_bucket"):
                entry.buckets.append((float(sample.labels["le"]), sample.value))
            elif sample.name.endswith("_sum"):
                entry.sum = sample.value
            elif sample.name.endswith("_count"):
                entry.count = sample.value

        return [
            MetricPoint(
                name=family.name,
                kind=MetricKind.HISTOGRAM,
                value=entry.to_value(),
                labels=dict(key),
                unit=family.unit,
                description=family.documentation,
                start_time=self._start_time,
                time=now,
            )
            for key, entry in series.items()
        ]


@dataclass
class _HistogramSeries:
    """Samples of one histogram label set, as read from the registry."""

    buckets: list[tuple[float, float]] = field(default_factory=list)
    sum: float = 0.0
    count: Optional[float] = None

    def to_value(self) -> HistogramValue:
        """Turn cumulative (le, count) buckets into per-bucket counts."""
        ordered = sorted(self.buckets)
        finite = [(le, int(c)) for le, c in ordered if not math.isinf(le)]
        inf_counts = [int(c) for le, c in ordered if math.isinf(le)]
        if inf_counts:
            overall = inf_counts[-1]
        elif self.count is not None:
            overall = int(self.count)
        else:
            overall = finite[-1][1] if finite else 0

        counts: list[int] = []
        previous = 0
        for _, cumulative in finite:
            counts.append(cumulative - previous)
            previous = cumulative
        counts.append(overall - previous)

        return HistogramValue(
            boundaries=tuple(le for le, _ in finite),
            counts=tuple(counts),
            sum=float(self.sum),
        )
