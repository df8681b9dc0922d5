"""Exporter configuration errors.

This module provides exception classes for invalid exporter setup:
- ExporterConfigurationError: Base class for all configuration errors
- MissingTenantIdError: No tenant id from argument or environment
- InvalidPushIntervalError: Negative push interval
- InvalidTimeoutError: Non-positive export timeout
- TimeoutExceedsIntervalError: Timeout longer than the period it bounds
- InvalidConcurrencyLimitError: Concurrency limit or queue depth out of range
- ExporterAlreadyRunningError: Second initialization of the same exporter kind
- ScrapeListenerStartError: Embedded scrape listener could not bind

All configuration errors are raised synchronously at setup time and are
never retried.
"""

from __future__ import annotations

from promexport.domain.exceptions import ExporterError


class ExporterConfigurationError(ExporterError):
    """Base class for exporter configuration errors."""

    pass


class MissingTenantIdError(ExporterConfigurationError):
    """Raised when no tenant id is available for an exporter.

    Attributes:
        env_var: The environment variable consulted as fallback, if any.
    """

    def __init__(self, env_var: str | None = None) -> None:
        self.env_var = env_var
        source = (
            f"and environment variable {env_var} is not set" if env_var else "was given"
        )
        super().__init__(
            f"No value defined for tenant_id {source}. "
            "A tenant id is required to identify the metrics source."
        )


class InvalidPushIntervalError(ExporterConfigurationError):
    """Raised when the push interval is negative.

    Attributes:
        push_interval_ms: The rejected interval.
    """

    def __init__(self, push_interval_ms: int) -> None:
        self.push_interval_ms = push_interval_ms
        super().__init__(f"Invalid push_interval_ms: {push_interval_ms}")


class InvalidTimeoutError(ExporterConfigurationError):
    """Raised when the export timeout is not strictly positive."""

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"Invalid timeout_ms: {timeout_ms}, must be positive")


class TimeoutExceedsIntervalError(ExporterConfigurationError):
    """Raised when a periodic schedule's timeout is longer than its interval.

    A cycle timeout longer than the period it bounds is inconsistent:
    the next cycle would start before the current one could be abandoned.

    Attributes:
        timeout_ms: The configured cycle timeout.
        push_interval_ms: The configured push interval.
    """

    def __init__(self, timeout_ms: int, push_interval_ms: int) -> None:
        self.timeout_ms = timeout_ms
        self.push_interval_ms = push_interval_ms
        super().__init__(
            f"timeout_ms ({timeout_ms}) may not be larger than "
            f"push_interval_ms ({push_interval_ms})"
        )


class InvalidConcurrencyLimitError(ExporterConfigurationError):
    """Raised when a dispatcher bound is out of range.

    Attributes:
        field_name: Which bound was rejected.
        value: The rejected value.
    """

    def __init__(self, field_name: str, value: int) -> None:
        self.field_name = field_name
        self.value = value
        super().__init__(f"Invalid {field_name}: {value}")


class ExporterAlreadyRunningError(ExporterConfigurationError):
    """Raised when an exporter kind is initialized while one is active.

    Attributes:
        kind: The exporter kind ("push" or "pull").
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(
            f"{kind.capitalize()} exporter is already running. You might have "
            f"called init_{kind}() more than once."
        )


class ScrapeListenerStartError(ExporterConfigurationError):
    """Raised when the embedded scrape listener cannot start serving.

    Attributes:
        hostname: Address the listener tried to bind.
        port: Port the listener tried to bind.
    """

    def __init__(self, hostname: str, port: int, reason: str = "") -> None:
        self.hostname = hostname
        self.port = port
        detail = f": {reason}" if reason else ""
        super().__init__(f"Scrape listener failed to start on {hostname}:{port}{detail}")
