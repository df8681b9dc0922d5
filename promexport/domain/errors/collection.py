"""Collection errors recorded in a CollectionResult.

A collection error describes one producer or one metric family that could
not be read. It never aborts the snapshot: the remaining streams are still
exported and the error is logged out-of-band.
"""

from __future__ import annotations

from promexport.domain.exceptions import ExporterError


class MetricCollectionError(ExporterError):
    """Raised (or recorded) when a metric source fails during collection.

    Attributes:
        source: Name of the producer or family that failed.
        reason: Short description of the failure.
    """

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Collection failed for {source}: {reason}")


class UnsupportedMetricTypeError(MetricCollectionError):
    """Recorded when a source exposes a type outside counter/gauge/histogram.

    Attributes:
        metric_type: The unsupported type name.
    """

    def __init__(self, source: str, metric_type: str) -> None:
        self.metric_type = metric_type
        super().__init__(source, f"unsupported metric type '{metric_type}'")
