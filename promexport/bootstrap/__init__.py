"""Exporter ownership and wiring for host applications."""

from promexport.bootstrap.context import ExporterContext
from promexport.bootstrap.handles import PullExporterHandle, PushExporterHandle
from promexport.bootstrap.logging import configure_structlog

__all__: list[str] = [
    "ExporterContext",
    "PullExporterHandle",
    "PushExporterHandle",
    "configure_structlog",
]
