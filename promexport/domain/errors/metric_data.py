"""Metric data model errors.

These are caller errors: the upstream aggregation layer handed the
exporter data that cannot be represented in the exposition format.
"""

from __future__ import annotations

from promexport.domain.exceptions import ExporterError


class MetricDataError(ExporterError):
    """Base class for invalid metric data."""

    pass


class ReservedLabelError(MetricDataError):
    """Raised when a histogram point defines the reserved `le` label.

    Attributes:
        metric_name: Name of the offending metric.
        label: The reserved label key.
    """

    def __init__(self, metric_name: str, label: str = "le") -> None:
        self.metric_name = metric_name
        self.label = label
        super().__init__(
            f"Histogram {metric_name} cannot have a label named '{label}', "
            "it is reserved for bucket boundaries"
        )


class MetricPointError(MetricDataError):
    """Raised when a metric point's value does not fit its kind."""

    pass


class UnsupportedTemporalityError(MetricDataError):
    """Raised when a metric group is not cumulative.

    Attributes:
        temporality: The rejected temporality value.
    """

    def __init__(self, temporality: str) -> None:
        self.temporality = temporality
        super().__init__(
            f"Unsupported aggregation temporality: {temporality}, "
            "only cumulative is exported"
        )


class ConflictingMetricTypeError(MetricDataError):
    """Raised when one metric family name is used with two different kinds.

    Attributes:
        metric_name: The sanitized family name.
        first_kind: The kind the family was first seen with.
        second_kind: The conflicting kind.
    """

    def __init__(self, metric_name: str, first_kind: str, second_kind: str) -> None:
        self.metric_name = metric_name
        self.first_kind = first_kind
        self.second_kind = second_kind
        super().__init__(
            f"Metric {metric_name} declared as {first_kind} and {second_kind}"
        )


class LabelCollisionError(MetricDataError):
    """Raised when two label keys of one series sanitize to the same name.

    Attributes:
        metric_name: Metric (or target_info) carrying the labels.
        first_key: Key seen first.
        second_key: Key colliding with it.
        label_name: The shared exposition label name.
    """

    def __init__(
        self, metric_name: str, first_key: str, second_key: str, label_name: str
    ) -> None:
        self.metric_name = metric_name
        self.first_key = first_key
        self.second_key = second_key
        self.label_name = label_name
        super().__init__(
            f"Labels '{first_key}' and '{second_key}' of {metric_name} "
            f"both render as '{label_name}'"
        )
