"""Prometheus text exposition serializer.

Converts a ResourceMetrics snapshot into Prometheus text format 0.0.4. Each
call builds prometheus_client metric families for the snapshot, registers
them on a throwaway CollectorRegistry and renders it with generate_latest().
prometheus_client owns escaping, number formatting, the counter `_total`
suffix and histogram sample layout; this module decides which families
exist and which labels each sample carries.

Output for a snapshot with a resource, a counter and a histogram:
    # HELP target_info Target metadata
    # TYPE target_info gauge
    target_info{service_name="api",tenant_id="acme"} 1.0
    # HELP requests_total Handled requests
    # TYPE requests_total counter
    requests_total{method="GET",tenant_id="acme"} 42.0
    # HELP latency_seconds Request latency
    # TYPE latency_seconds histogram
    latency_seconds_bucket{le="0.1",tenant_id="acme"} 3.0
    latency_seconds_bucket{le="+Inf",tenant_id="acme"} 5.0
    latency_seconds_count{tenant_id="acme"} 5.0
    latency_seconds_sum{tenant_id="acme"} 0.9

Rules kept here:
- target_info first, then families in order of first appearance
- one kind per family name
- the configured tenant replaces any tenant_id label a point carries
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Optional

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import (
    CounterMetricFamily,
    GaugeMetricFamily,
    HistogramMetricFamily,
    InfoMetricFamily,
)
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector
from prometheus_client.utils import floatToGoString

from promexport.domain.errors.metric_data import ConflictingMetricTypeError
from promexport.domain.models.metric_data import (
    TARGET_INFO_METRIC,
    HistogramValue,
    MetricKind,
    MetricPoint,
    ResourceMetrics,
)
from promexport.domain.models.naming import sanitize_label_name, sanitize_metric_name
from promexport.domain.models.tenant import TENANT_LABEL, TenantContext

# prometheus_client's CONTENT_TYPE_LATEST moved past 0.0.4 in newer releases
EXPOSITION_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

TARGET_INFO_DESCRIPTION = "Target metadata"
MISSING_DESCRIPTION = "description missing"
COUNTER_SUFFIX = "_total"

# InfoMetricFamily appends "_info" itself
_TARGET_INFO_FAMILY = TARGET_INFO_METRIC.removesuffix("_info")


class _SnapshotFamilies(Collector):
    """One-shot collector yielding prebuilt families."""

    def __init__(self, families: list[Metric]) -> None:
        self._families = families

    def collect(self) -> Iterable[Metric]:
        return iter(self._families)


class PrometheusSerializer:
    """Serializer for the Prometheus text exposition format.

    Attributes:
        tenant: Optional tenant embedded as a label on every sample.
        append_timestamp: Whether samples end with the collection time (ms).
    """

    def __init__(
        self,
        tenant: TenantContext | None = None,
        append_timestamp: bool = False,
    ) -> None:
        """Initialize the serializer.

        Args:
            tenant: Tenant scoping; rendered as the `tenant_id` label.
            append_timestamp: Append sample timestamps. Off by default since
                push gateways reject pushed timestamps.
        """
        self.tenant = tenant
        self.append_timestamp = append_timestamp

    @property
    def content_type(self) -> str:
        return EXPOSITION_CONTENT_TYPE

    def serialize(self, resource_metrics: ResourceMetrics) -> str:
        """Serialize a snapshot to exposition text.

        Args:
            resource_metrics: The snapshot to render.

        Returns:
            Exposition text; empty string for an empty snapshot.

        Raises:
            ConflictingMetricTypeError: One family name used with two kinds.
        """
        families: list[Metric] = []
        if resource_metrics.resource:
            families.append(self._target_info(resource_metrics.resource))
        families.extend(self._metric_families(resource_metrics))

        registry = CollectorRegistry(auto_describe=False)
        registry.register(_SnapshotFamilies(families))
        return generate_latest(registry).decode("utf-8")

    def _metric_families(self, resource_metrics: ResourceMetrics) -> list[Metric]:
        families: dict[str, tuple[MetricKind, Metric]] = {}
        for group in resource_metrics.groups:
            for point in group.points:
                name = sanitize_metric_name(point.name)
                exposed = name
                if point.kind is MetricKind.COUNTER and not name.endswith(COUNTER_SUFFIX):
                    exposed = name + COUNTER_SUFFIX

                point_family = self._point_family(name, point)
                existing = families.get(exposed)
                if existing is None:
                    families[exposed] = (point.kind, point_family)
                    continue
                kind, family = existing
                if kind is not point.kind:
                    raise ConflictingMetricTypeError(exposed, kind.value, point.kind.value)
                family.samples.extend(point_family.samples)
        return [family for _, family in families.values()]

    def _point_family(self, name: str, point: MetricPoint) -> Metric:
        """Build a single-series family for one point."""
        label_names, label_values = self._labels(point.labels)
        documentation = point.description or MISSING_DESCRIPTION
        timestamp: Optional[float] = point.time if self.append_timestamp else None

        if isinstance(point.value, HistogramValue):
            histogram = HistogramMetricFamily(name, documentation, labels=label_names)
            histogram.add_metric(
                label_values,
                buckets=_cumulative_buckets(point.value),
                sum_value=point.value.sum,
                timestamp=timestamp,
            )
            return histogram

        if point.kind is MetricKind.COUNTER:
            counter = CounterMetricFamily(name, documentation, labels=label_names)
            counter.add_metric(label_values, point.value, timestamp=timestamp)
            return counter

        gauge = GaugeMetricFamily(name, documentation, labels=label_names)
        gauge.add_metric(label_values, point.value, timestamp=timestamp)
        return gauge

    def _target_info(self, resource: Mapping[str, str]) -> Metric:
        label_names, label_values = self._labels(resource)
        return InfoMetricFamily(
            _TARGET_INFO_FAMILY,
            TARGET_INFO_DESCRIPTION,
            value=dict(zip(label_names, label_values)),
        )

    def _labels(self, labels: Mapping[str, str]) -> tuple[list[str], list[str]]:
        """Sanitized label names and values, with the tenant label applied."""
        names: list[str] = []
        values: list[str] = []
        if self.tenant is not None:
            names.append(TENANT_LABEL)
            values.append(self.tenant.tenant_id)
        for key, value in labels.items():
            name = sanitize_label_name(key)
            if name == TENANT_LABEL and self.tenant is not None:
                continue
            names.append(name)
            values.append(value)
        return names, values


def _cumulative_buckets(histogram: HistogramValue) -> list[tuple[str, float]]:
    cumulative = histogram.cumulative_counts()
    buckets = [
        (floatToGoString(bound), float(count))
        for bound, count in zip(histogram.boundaries, cumulative)
    ]
    buckets.append(("+Inf", float(cumulative[-1])))
    return buckets
