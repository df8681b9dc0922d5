"""Metric producer port: the contract the exporter needs from instrumentation."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from promexport.domain.models.metric_data import CollectionResult


@runtime_checkable
class MetricProducerPort(Protocol):
    """Source of point-in-time metric snapshots.

    Implementations read the current state of their instruments and
    return a fresh CollectionResult on every call. A stream that cannot
    be read goes into CollectionResult.errors; the remaining streams are
    still returned.

    Implementations must be safe to call concurrently with measurement
    recording and must never mutate the instruments they read.
    """

    @property
    def name(self) -> str:
        """Producer name used in logs and collection errors."""
        ...

    async def collect(self) -> CollectionResult:
        """Take a snapshot of all streams this producer owns."""
        ...


__all__ = ["MetricProducerPort"]
