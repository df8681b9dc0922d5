"""Prometheus text exposition format."""

from promexport.infrastructure.exposition.serializer import (
    EXPOSITION_CONTENT_TYPE,
    PrometheusSerializer,
)

__all__: list[str] = [
    "EXPOSITION_CONTENT_TYPE",
    "PrometheusSerializer",
]
