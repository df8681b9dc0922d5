"""Domain models for the export pipeline."""

from promexport.domain.models.build_info import (
    BUILD_INFO_DESCRIPTION,
    BUILD_INFO_METRIC,
    BuildInfo,
)
from promexport.domain.models.metric_data import (
    RESERVED_HISTOGRAM_LABEL,
    TARGET_INFO_METRIC,
    AggregationTemporality,
    CollectionResult,
    HistogramValue,
    MetricGroup,
    MetricKind,
    MetricPoint,
    ResourceMetrics,
)
from promexport.domain.models.naming import (
    find_label_collision,
    sanitize_label_name,
    sanitize_metric_name,
)
from promexport.domain.models.schedule import (
    DEFAULT_PUSH_INTERVAL_MS,
    DEFAULT_TIMEOUT_MS,
    ExportSchedule,
    ScheduleMode,
)
from promexport.domain.models.tenant import TENANT_HEADER, TENANT_LABEL, TenantContext

__all__: list[str] = [
    "AggregationTemporality",
    "BUILD_INFO_DESCRIPTION",
    "BUILD_INFO_METRIC",
    "BuildInfo",
    "CollectionResult",
    "DEFAULT_PUSH_INTERVAL_MS",
    "DEFAULT_TIMEOUT_MS",
    "ExportSchedule",
    "HistogramValue",
    "MetricGroup",
    "MetricKind",
    "MetricPoint",
    "RESERVED_HISTOGRAM_LABEL",
    "ResourceMetrics",
    "ScheduleMode",
    "TENANT_HEADER",
    "TARGET_INFO_METRIC",
    "TENANT_LABEL",
    "TenantContext",
    "find_label_collision",
    "sanitize_label_name",
    "sanitize_metric_name",
]
