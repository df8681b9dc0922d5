"""Domain errors for promexport.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from ExporterError.
"""

from promexport.domain.errors.collection import (
    MetricCollectionError,
    UnsupportedMetricTypeError,
)
from promexport.domain.errors.configuration import (
    ExporterAlreadyRunningError,
    ExporterConfigurationError,
    InvalidConcurrencyLimitError,
    InvalidPushIntervalError,
    InvalidTimeoutError,
    MissingTenantIdError,
    ScrapeListenerStartError,
    TimeoutExceedsIntervalError,
)
from promexport.domain.errors.metric_data import (
    ConflictingMetricTypeError,
    LabelCollisionError,
    MetricDataError,
    MetricPointError,
    ReservedLabelError,
    UnsupportedTemporalityError,
)

__all__: list[str] = [
    "ConflictingMetricTypeError",
    "ExporterAlreadyRunningError",
    "ExporterConfigurationError",
    "InvalidConcurrencyLimitError",
    "InvalidPushIntervalError",
    "InvalidTimeoutError",
    "LabelCollisionError",
    "MetricCollectionError",
    "MetricDataError",
    "MetricPointError",
    "MissingTenantIdError",
    "ReservedLabelError",
    "ScrapeListenerStartError",
    "TimeoutExceedsIntervalError",
    "UnsupportedMetricTypeError",
    "UnsupportedTemporalityError",
]
