"""Exporter configuration for push and pull modes.

Configuration is validated at construction so that inconsistent setups
fail at startup, never at run time.

Environment Variables (Push):
- MASSIVE_DSO_TENANT_ID: Tenant fallback when tenant_id is not given
- PROMEXPORT_PUSH_URL: Push gateway URL
- PROMEXPORT_PUSH_INTERVAL_MS: Push interval, 0 for eager (default: 0)
- PROMEXPORT_PUSH_TIMEOUT_MS: Cycle timeout (default: 1000)
- PROMEXPORT_CONCURRENCY_LIMIT: Max in-flight pushes (default: unbounded)

Environment Variables (Pull):
- MASSIVE_TENANT_ID: Tenant fallback when tenant_id is not given
- PROMEXPORT_PULL_HOST: Listener address (default: 0.0.0.0)
- PROMEXPORT_PULL_PORT: Listener port (default: 9464)
- PROMEXPORT_ROUTE_PATH: Scrape route (default: /metrics)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Optional

from fastapi import APIRouter

from promexport.api.routes.metrics import DEFAULT_ROUTE_PATH, normalize_route_path
from promexport.api.transport import (
    DEFAULT_HOSTNAME,
    DEFAULT_PORT,
    ScrapeTransport,
    select_transport,
)
from promexport.domain.errors.configuration import (
    ExporterConfigurationError,
    InvalidConcurrencyLimitError,
    MissingTenantIdError,
)
from promexport.domain.models.build_info import BuildInfo
from promexport.domain.models.schedule import (
    DEFAULT_PUSH_INTERVAL_MS,
    DEFAULT_TIMEOUT_MS,
    ExportSchedule,
)
from promexport.domain.models.tenant import TenantContext

PUSH_TENANT_ENV = "MASSIVE_DSO_TENANT_ID"
PULL_TENANT_ENV = "MASSIVE_TENANT_ID"


def _get_int_env(env: Mapping[str, str], key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        env: Environment mapping.
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = env.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_optional_int_env(env: Mapping[str, str], key: str) -> Optional[int]:
    value = env.get(key)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def resolve_tenant(
    tenant_id: Optional[str],
    env_var: str,
    environ: Mapping[str, str] | None = None,
) -> TenantContext:
    """Resolve the tenant from an explicit value or the environment.

    Args:
        tenant_id: Explicit tenant id; wins when non-empty.
        env_var: Environment variable used as fallback.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        The resolved TenantContext.

    Raises:
        MissingTenantIdError: Neither source provides a tenant id.
    """
    env = os.environ if environ is None else environ
    value = (tenant_id or "").strip() or (env.get(env_var) or "").strip()
    if not value:
        raise MissingTenantIdError(env_var)
    return TenantContext(tenant_id=value)


@dataclass(frozen=True)
class PushExporterConfig:
    """Configuration for the push gateway exporter.

    Attributes:
        url: Full URL (including scheme) of the push gateway.
        tenant_id: Tenant id; falls back to MASSIVE_DSO_TENANT_ID.
        headers: Extra headers sent with every push.
        push_interval_ms: Interval between pushes; 0 pushes eagerly on every
            recorded measurement. May not be smaller than timeout_ms.
        concurrency_limit: Max in-flight pushes; None for unbounded.
        timeout_ms: Timeout of one push cycle.
        build_info: Labels for the build_info metric.
        max_queue_depth: Max pushes waiting for a slot; None for unbounded.
    """

    url: str
    tenant_id: Optional[str] = None
    headers: dict[str, str] = field(default_factory=dict)
    push_interval_ms: int = DEFAULT_PUSH_INTERVAL_MS
    concurrency_limit: Optional[int] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    build_info: BuildInfo = field(default_factory=BuildInfo)
    max_queue_depth: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.url:
            raise ExporterConfigurationError("url cannot be empty")
        # Raises the schedule errors for bad interval/timeout pairs
        ExportSchedule(push_interval_ms=self.push_interval_ms, timeout_ms=self.timeout_ms)
        if self.concurrency_limit is not None and self.concurrency_limit < 1:
            raise InvalidConcurrencyLimitError("concurrency_limit", self.concurrency_limit)
        if self.max_queue_depth is not None and self.max_queue_depth < 0:
            raise InvalidConcurrencyLimitError("max_queue_depth", self.max_queue_depth)

    @property
    def schedule(self) -> ExportSchedule:
        return ExportSchedule(
            push_interval_ms=self.push_interval_ms, timeout_ms=self.timeout_ms
        )

    def resolve_tenant(self, environ: Mapping[str, str] | None = None) -> TenantContext:
        """Resolve the tenant with the MASSIVE_DSO_TENANT_ID fallback."""
        return resolve_tenant(self.tenant_id, PUSH_TENANT_ENV, environ)

    @classmethod
    def from_environment(
        cls,
        tenant_id: Optional[str] = None,
        headers: Mapping[str, str] | None = None,
        build_info: Optional[BuildInfo] = None,
        environ: Mapping[str, str] | None = None,
    ) -> "PushExporterConfig":
        """Create config from environment variables with defaults.

        Args:
            tenant_id: Explicit tenant id.
            headers: Extra push headers.
            build_info: Build info; defaults to BuildInfo.from_environment().
            environ: Environment mapping (defaults to os.environ).

        Returns:
            PushExporterConfig with values from environment or defaults.
        """
        env = os.environ if environ is None else environ
        return cls(
            url=env.get("PROMEXPORT_PUSH_URL", ""),
            tenant_id=tenant_id,
            headers=dict(headers or {}),
            push_interval_ms=_get_int_env(
                env, "PROMEXPORT_PUSH_INTERVAL_MS", DEFAULT_PUSH_INTERVAL_MS
            ),
            concurrency_limit=_get_optional_int_env(env, "PROMEXPORT_CONCURRENCY_LIMIT"),
            timeout_ms=_get_int_env(env, "PROMEXPORT_PUSH_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
            build_info=build_info or BuildInfo.from_environment(environ=env),
        )


@dataclass(frozen=True)
class PullExporterConfig:
    """Configuration for the Prometheus scrape endpoint.

    Attributes:
        tenant_id: Tenant id; falls back to MASSIVE_TENANT_ID.
        build_info: Labels for the build_info metric.
        hostname: Listener address (ignored when router is given).
        port: Listener port (ignored when router is given).
        route_path: Scrape path; normalized to start with '/'.
        router: Host FastAPI router; takes precedence over the listener.
        append_timestamp: Append collection timestamps to samples.
    """

    tenant_id: Optional[str] = None
    build_info: BuildInfo = field(default_factory=BuildInfo)
    hostname: str = DEFAULT_HOSTNAME
    port: int = DEFAULT_PORT
    route_path: str = DEFAULT_ROUTE_PATH
    router: Optional[APIRouter] = field(default=None, compare=False, repr=False)
    append_timestamp: bool = False

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not 0 <= self.port <= 65535:
            raise ExporterConfigurationError(f"port must be in 0..65535, got {self.port}")
        object.__setattr__(self, "route_path", normalize_route_path(self.route_path))

    @property
    def transport(self) -> ScrapeTransport:
        """The scrape transport this configuration selects."""
        return select_transport(self.router, hostname=self.hostname, port=self.port)

    def resolve_tenant(self, environ: Mapping[str, str] | None = None) -> TenantContext:
        """Resolve the tenant with the MASSIVE_TENANT_ID fallback."""
        return resolve_tenant(self.tenant_id, PULL_TENANT_ENV, environ)

    @classmethod
    def from_environment(
        cls,
        tenant_id: Optional[str] = None,
        router: Optional[APIRouter] = None,
        build_info: Optional[BuildInfo] = None,
        environ: Mapping[str, str] | None = None,
    ) -> "PullExporterConfig":
        """Create config from environment variables with defaults.

        Args:
            tenant_id: Explicit tenant id.
            router: Host router, if the endpoint should attach to one.
            build_info: Build info; defaults to BuildInfo.from_environment().
            environ: Environment mapping (defaults to os.environ).

        Returns:
            PullExporterConfig with values from environment or defaults.
        """
        env = os.environ if environ is None else environ
        return cls(
            tenant_id=tenant_id,
            build_info=build_info or BuildInfo.from_environment(environ=env),
            hostname=env.get("PROMEXPORT_PULL_HOST", DEFAULT_HOSTNAME),
            port=_get_int_env(env, "PROMEXPORT_PULL_PORT", DEFAULT_PORT),
            route_path=env.get("PROMEXPORT_ROUTE_PATH", DEFAULT_ROUTE_PATH),
            router=router,
        )
