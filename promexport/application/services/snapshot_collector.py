"""Snapshot collector service.

Invokes every registered metric producer and merges their output into a
single CollectionResult under one resource identity.

Failure semantics:
- A producer that raises becomes a MetricCollectionError entry
- Per-stream errors reported by producers are passed through
- Errors are logged here and never reach the serialized output
- The collector keeps no state across calls
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Mapping, Sequence

from promexport.application.ports.metric_producer import MetricProducerPort
from promexport.application.services.base import LoggingMixin
from promexport.domain.errors.collection import MetricCollectionError
from promexport.domain.models.metric_data import (
    CollectionResult,
    MetricGroup,
    ResourceMetrics,
)

SERVICE_NAME_ENV_VARS = ("OTEL_SERVICE_NAME", "SERVICE_NAME")
DEFAULT_SERVICE_NAME = "unknown_service"


def default_resource(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Build the default resource attributes for this process.

    Args:
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Resource attributes with at least `service.name`.
    """
    env = os.environ if environ is None else environ
    for var in SERVICE_NAME_ENV_VARS:
        if env.get(var):
            return {"service.name": env[var]}
    return {"service.name": DEFAULT_SERVICE_NAME}


class SnapshotCollector(LoggingMixin):
    """Merges producer snapshots into one CollectionResult.

    Example:
        >>> collector = SnapshotCollector([PrometheusClientProducer(registry)])
        >>> result = await collector.collect()
        >>> result.errors
        ()
    """

    def __init__(
        self,
        producers: Sequence[MetricProducerPort] = (),
        resource: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the collector.

        Args:
            producers: Metric producers, collected in this order.
            resource: Resource attributes; defaults to default_resource().

        Raises:
            LabelCollisionError: Two resource keys render as one label.
        """
        self._producers: list[MetricProducerPort] = list(producers)
        self._resource = dict(resource) if resource is not None else default_resource()
        ResourceMetrics(resource=self._resource)
        self._init_logger("collect")

    @property
    def producers(self) -> tuple[MetricProducerPort, ...]:
        return tuple(self._producers)

    @property
    def resource(self) -> dict[str, str]:
        return dict(self._resource)

    def add_producer(self, producer: MetricProducerPort) -> None:
        """Register another producer; it is included from the next collect()."""
        self._producers.append(producer)

    async def collect(self) -> CollectionResult:
        """Collect a fresh snapshot from every producer.

        Producers run concurrently; output order follows registration order.

        Returns:
            CollectionResult holding every group that was collected and
            every error met on the way.
        """
        producers = list(self._producers)
        results = await asyncio.gather(
            *(producer.collect() for producer in producers),
            return_exceptions=True,
        )

        groups: list[MetricGroup] = []
        errors: list[Exception] = []
        for producer, result in zip(producers, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                error = MetricCollectionError(producer.name, str(result))
                error.__cause__ = result
                errors.append(error)
                continue
            groups.extend(result.resource_metrics.groups)
            errors.extend(result.errors)

        if errors:
            self._log_operation("collect").warning(
                "metrics_collection_errors",
                error_count=len(errors),
                errors=[str(e) for e in errors],
            )

        return CollectionResult(
            resource_metrics=ResourceMetrics(resource=self._resource, groups=tuple(groups)),
            errors=tuple(errors),
        )
