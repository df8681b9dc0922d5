"""Exporter configuration."""

from promexport.config.exporter_config import (
    PULL_TENANT_ENV,
    PUSH_TENANT_ENV,
    PullExporterConfig,
    PushExporterConfig,
    resolve_tenant,
)

__all__: list[str] = [
    "PULL_TENANT_ENV",
    "PUSH_TENANT_ENV",
    "PullExporterConfig",
    "PushExporterConfig",
    "resolve_tenant",
]
