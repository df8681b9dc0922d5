"""Unit tests for PrometheusClientProducer.

Each test uses its own CollectorRegistry so the global REGISTRY is never
touched.
"""

from collections.abc import Iterator

import pytest
from prometheus_client import CollectorRegistry, Counter, Enum, Gauge, Histogram, Info, Summary
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from promexport.domain.errors import MetricCollectionError, UnsupportedMetricTypeError
from promexport.domain.models import HistogramValue, MetricKind, MetricPoint
from promexport.infrastructure.exposition import PrometheusSerializer
from promexport.infrastructure.producers import PrometheusClientProducer


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


def _points(result_points: tuple[MetricPoint, ...], name: str) -> list[MetricPoint]:
    return [p for p in result_points if p.name == name]


class TestScalarFamilies:
    """Tests for counter and gauge-like families."""

    @pytest.mark.asyncio
    async def test_counter_uses_family_name(self, registry: CollectorRegistry) -> None:
        requests = Counter("requests", "Handled requests", ["method"], registry=registry)
        requests.labels(method="GET").inc(3)

        result = await PrometheusClientProducer(registry, clock=lambda: 100.0).collect()

        points = result.resource_metrics.groups[0].points
        assert result.succeeded
        assert len(points) == 1
        point = points[0]
        assert point.name == "requests"
        assert point.kind is MetricKind.COUNTER
        assert point.value == 3.0
        assert point.labels == {"method": "GET"}
        assert point.description == "Handled requests"
        assert point.time == 100.0

    @pytest.mark.asyncio
    async def test_gauge(self, registry: CollectorRegistry) -> None:
        Gauge("queue_depth", "Items waiting", registry=registry).set(7)

        result = await PrometheusClientProducer(registry).collect()

        (point,) = result.resource_metrics.groups[0].points
        assert point.kind is MetricKind.GAUGE
        assert point.value == 7.0

    @pytest.mark.asyncio
    async def test_info_and_enum_map_to_gauges(self, registry: CollectorRegistry) -> None:
        Info("deploy", "Deployment", registry=registry).info({"region": "eu"})
        Enum("phase", "Phase", states=["starting", "running"], registry=registry).state(
            "running"
        )

        result = await PrometheusClientProducer(registry).collect()

        points = result.resource_metrics.groups[0].points
        assert all(p.kind is MetricKind.GAUGE for p in points)
        (info,) = _points(points, "deploy_info")
        assert info.labels == {"region": "eu"}
        running = [p for p in _points(points, "phase") if p.labels["phase"] == "running"]
        assert running[0].value == 1.0


class TestHistogramFamilies:
    """Tests for histogram reconstruction."""

    @pytest.mark.asyncio
    async def test_buckets_rebuilt_as_per_bucket_counts(
        self, registry: CollectorRegistry
    ) -> None:
        latency = Histogram(
            "latency_seconds", "Request latency", buckets=(0.1, 0.5), registry=registry
        )
        for value in (0.05, 0.3, 2.0):
            latency.observe(value)

        result = await PrometheusClientProducer(registry).collect()

        (point,) = result.resource_metrics.groups[0].points
        assert point.kind is MetricKind.HISTOGRAM
        assert isinstance(point.value, HistogramValue)
        assert point.value.boundaries == (0.1, 0.5)
        assert point.value.counts == (1, 1, 1)
        assert point.value.sum == pytest.approx(2.35)
        assert "le" not in point.labels

    @pytest.mark.asyncio
    async def test_labelled_histogram_one_point_per_series(
        self, registry: CollectorRegistry
    ) -> None:
        latency = Histogram(
            "latency_seconds", "Latency", ["route"], buckets=(1.0,), registry=registry
        )
        latency.labels(route="/a").observe(0.5)
        latency.labels(route="/b").observe(5)

        result = await PrometheusClientProducer(registry).collect()

        points = result.resource_metrics.groups[0].points
        assert [p.labels for p in points] == [{"route": "/a"}, {"route": "/b"}]
        assert [p.value.counts for p in points] == [(1, 0), (0, 1)]  # type: ignore[union-attr]


class TestUnsupportedAndFailingFamilies:
    """Tests for per-family and registry-level failures."""

    @pytest.mark.asyncio
    async def test_summary_reported_and_skipped(self, registry: CollectorRegistry) -> None:
        Summary("rpc_seconds", "RPC time", registry=registry).observe(1)
        Gauge("up", "Up", registry=registry).set(1)

        result = await PrometheusClientProducer(registry).collect()

        assert [p.name for p in result.resource_metrics.groups[0].points] == ["up"]
        (error,) = result.errors
        assert isinstance(error, UnsupportedMetricTypeError)
        assert error.source == "rpc_seconds"
        assert error.metric_type == "summary"

    @pytest.mark.asyncio
    async def test_registry_failure_keeps_partial_results(
        self, registry: CollectorRegistry
    ) -> None:
        class BrokenCollector:
            def collect(self) -> Iterator[Metric]:
                yield GaugeMetricFamily("before_failure", "Read fine", value=1)
                raise RuntimeError("collector exploded")

        registry.register(BrokenCollector())  # type: ignore[arg-type]

        result = await PrometheusClientProducer(registry).collect()

        assert [p.name for p in result.resource_metrics.groups[0].points] == [
            "before_failure"
        ]
        (error,) = result.errors
        assert isinstance(error, MetricCollectionError)
        assert "collector exploded" in str(error)

    @pytest.mark.asyncio
    async def test_colliding_label_names_reported_and_skipped(
        self, registry: CollectorRegistry
    ) -> None:
        class DottedLabels:
            def collect(self) -> Iterator[Metric]:
                clashing = GaugeMetricFamily("clashing", "Two keys", labels=["a.b", "a_b"])
                clashing.add_metric(["x", "y"], 1)
                yield clashing
                yield GaugeMetricFamily("up", "Up", value=1)

        registry.register(DottedLabels())  # type: ignore[arg-type]

        result = await PrometheusClientProducer(registry).collect()

        assert [p.name for p in result.resource_metrics.groups[0].points] == ["up"]
        (error,) = result.errors
        assert isinstance(error, MetricCollectionError)
        assert error.source == "clashing"
        assert "a_b" in error.reason


class TestProducerRendering:
    """Converted families serialize like prometheus_client would name them."""

    @pytest.mark.asyncio
    async def test_counter_rendered_with_total_suffix(
        self, registry: CollectorRegistry
    ) -> None:
        Counter("jobs", "Jobs run", registry=registry).inc(2)

        result = await PrometheusClientProducer(registry).collect()
        body = PrometheusSerializer().serialize(result.resource_metrics)

        assert "# TYPE jobs_total counter\njobs_total 2.0\n" in body

    def test_defaults_to_global_registry(self) -> None:
        from prometheus_client import REGISTRY

        producer = PrometheusClientProducer()

        assert producer.registry is REGISTRY
        assert producer.name == "prometheus_client"
