"""Producer for the fixed-value `build_info` metric."""

from __future__ import annotations

import time
from collections.abc import Callable

from promexport.domain.models.build_info import (
    BUILD_INFO_DESCRIPTION,
    BUILD_INFO_METRIC,
    BuildInfo,
)
from promexport.domain.models.metric_data import (
    CollectionResult,
    MetricGroup,
    MetricKind,
    MetricPoint,
    ResourceMetrics,
)


class BuildInfoProducer:
    """Reports `build_info{<labels>} 1` on every collection."""

    def __init__(self, build_info: BuildInfo, clock: Callable[[], float] = time.time) -> None:
        self._build_info = build_info
        self._clock = clock
        self._start_time = clock()

    @property
    def name(self) -> str:
        return BUILD_INFO_METRIC

    @property
    def build_info(self) -> BuildInfo:
        return self._build_info

    async def collect(self) -> CollectionResult:
        point = MetricPoint(
            name=BUILD_INFO_METRIC,
            kind=MetricKind.GAUGE,
            value=1,
            labels=self._build_info.labels,
            description=BUILD_INFO_DESCRIPTION,
            start_time=self._start_time,
            time=self._clock(),
        )
        return CollectionResult(
            resource_metrics=ResourceMetrics(
                groups=(MetricGroup(points=(point,), scope=BUILD_INFO_METRIC),)
            )
        )
