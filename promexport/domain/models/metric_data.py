"""Metric data model consumed by the export pipeline.

The model mirrors what an aggregation layer hands to a metric reader:
a resource (process identity) plus ordered groups of metric points, each
group tagged with its aggregation temporality.

Invariants:
- Histogram points never define the `le` label (reserved for buckets)
- Histogram bucket boundaries are strictly ascending and finite
- Only cumulative temporality is exported
- No two label keys of a point, or of the resource, render as the same
  exposition label name
- Points are immutable once built; labels are copied on construction
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from promexport.domain.errors.metric_data import (
    LabelCollisionError,
    MetricPointError,
    ReservedLabelError,
    UnsupportedTemporalityError,
)
from promexport.domain.models.naming import find_label_collision

RESERVED_HISTOGRAM_LABEL = "le"
TARGET_INFO_METRIC = "target_info"


def _check_label_collision(metric_name: str, labels: dict[str, str]) -> None:
    collision = find_label_collision(labels)
    if collision is not None:
        raise LabelCollisionError(metric_name, *collision)


class MetricKind(str, Enum):
    """Kind of a measurement stream.

    Values map directly onto the exposition `# TYPE` keyword.
    """

    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"


class AggregationTemporality(str, Enum):
    """How reported values relate to earlier reports.

    CUMULATIVE: running total since process start.
    DELTA: change since the last export (not exported by this system).
    """

    CUMULATIVE = "cumulative"
    DELTA = "delta"


@dataclass(frozen=True)
class HistogramValue:
    """Bucketed distribution of a histogram stream.

    Attributes:
        boundaries: Upper bounds of the finite buckets, strictly ascending.
        counts: Per-bucket (non-cumulative) observation counts. One more
            entry than boundaries; the last entry is the overflow bucket.
        sum: Sum of all observed values.
    """

    boundaries: tuple[float, ...]
    counts: tuple[int, ...]
    sum: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "boundaries", tuple(float(b) for b in self.boundaries))
        object.__setattr__(self, "counts", tuple(int(c) for c in self.counts))
        if len(self.counts) != len(self.boundaries) + 1:
            raise MetricPointError(
                f"Histogram needs {len(self.boundaries) + 1} bucket counts, "
                f"got {len(self.counts)}"
            )
        for bound in self.boundaries:
            if not math.isfinite(bound):
                raise MetricPointError(f"Histogram boundary must be finite, got {bound}")
        for lower, upper in zip(self.boundaries, self.boundaries[1:]):
            if upper <= lower:
                raise MetricPointError(
                    f"Histogram boundaries must be strictly ascending: {self.boundaries}"
                )
        if any(c < 0 for c in self.counts):
            raise MetricPointError("Histogram bucket counts cannot be negative")

    @property
    def count(self) -> int:
        """Total number of observations."""
        return sum(self.counts)

    def cumulative_counts(self) -> list[int]:
        """Running bucket totals, the last one being the total count."""
        totals: list[int] = []
        running = 0
        for c in self.counts:
            running += c
            totals.append(running)
        return totals


MetricValue = Union[float, HistogramValue]


@dataclass(frozen=True)
class MetricPoint:
    """One measurement stream at collection time.

    Attributes:
        name: Metric name before exposition sanitizing.
        kind: Counter, gauge or histogram.
        value: Scalar for counters and gauges, HistogramValue for histograms.
        labels: Label key/value pairs; insertion order is preserved.
        unit: Unit of measure (informational).
        description: Help text for the metric family.
        start_time: Collection start, epoch seconds.
        time: Collection end, epoch seconds.
    """

    name: str
    kind: MetricKind
    value: MetricValue
    labels: dict[str, str] = field(default_factory=dict)
    unit: str = ""
    description: str = ""
    start_time: float = 0.0
    time: float = 0.0

    def __post_init__(self) -> None:
        if not self.name:
            raise MetricPointError("Metric name cannot be empty")
        object.__setattr__(
            self, "labels", {str(k): str(v) for k, v in self.labels.items()}
        )
        _check_label_collision(self.name, self.labels)
        if self.kind is MetricKind.HISTOGRAM:
            if not isinstance(self.value, HistogramValue):
                raise MetricPointError(
                    f"Histogram {self.name} requires a HistogramValue, "
                    f"got {type(self.value).__name__}"
                )
            if RESERVED_HISTOGRAM_LABEL in self.labels:
                raise ReservedLabelError(self.name)
        elif isinstance(self.value, HistogramValue) or isinstance(self.value, bool):
            raise MetricPointError(
                f"{self.kind.value.capitalize()} {self.name} requires a number"
            )
        elif not isinstance(self.value, (int, float)):
            raise MetricPointError(
                f"{self.kind.value.capitalize()} {self.name} requires a number, "
                f"got {type(self.value).__name__}"
            )


@dataclass(frozen=True)
class MetricGroup:
    """Ordered metric points sharing one temporality.

    Attributes:
        points: Points in collection order.
        temporality: Aggregation temporality (cumulative only).
        scope: Optional instrumentation scope name.
    """

    points: tuple[MetricPoint, ...] = ()
    temporality: AggregationTemporality = AggregationTemporality.CUMULATIVE
    scope: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", tuple(self.points))
        if self.temporality is not AggregationTemporality.CUMULATIVE:
            raise UnsupportedTemporalityError(str(self.temporality.value))


@dataclass(frozen=True)
class ResourceMetrics:
    """A resource identity plus its metric groups.

    Attributes:
        resource: Process/service attributes (e.g. service.name).
        groups: Metric groups in collection order.
    """

    resource: dict[str, str] = field(default_factory=dict)
    groups: tuple[MetricGroup, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "resource", {str(k): str(v) for k, v in self.resource.items()}
        )
        _check_label_collision(TARGET_INFO_METRIC, self.resource)
        object.__setattr__(self, "groups", tuple(self.groups))

    @property
    def point_count(self) -> int:
        """Number of points across all groups."""
        return sum(len(g.points) for g in self.groups)


@dataclass(frozen=True)
class CollectionResult:
    """A snapshot plus any per-stream errors met while taking it.

    An empty errors tuple means the collection fully succeeded. Errors are
    never serialized; they are surfaced through logs.
    """

    resource_metrics: ResourceMetrics
    errors: tuple[Exception, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "errors", tuple(self.errors))

    @property
    def succeeded(self) -> bool:
        """Check whether every stream was collected."""
        return not self.errors
