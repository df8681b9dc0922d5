"""Export services: snapshot collection and scheduling."""

from promexport.application.services.export_scheduler import ExportScheduler, ExportStats
from promexport.application.services.snapshot_collector import (
    SnapshotCollector,
    default_resource,
)

__all__: list[str] = [
    "ExportScheduler",
    "ExportStats",
    "SnapshotCollector",
    "default_resource",
]
