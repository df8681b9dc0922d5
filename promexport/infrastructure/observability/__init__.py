"""Exporter self-observability: structlog setup and correlation IDs."""

from promexport.infrastructure.observability.correlation import (
    CORRELATION_ID_HEADER,
    begin_export_cycle,
    correlation_id_from_headers,
    correlation_id_processor,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from promexport.infrastructure.observability.logging import (
    configure_structlog,
    get_logger_for_component,
    resolve_log_level,
)

__all__: list[str] = [
    "CORRELATION_ID_HEADER",
    "begin_export_cycle",
    "configure_structlog",
    "correlation_id_from_headers",
    "correlation_id_processor",
    "generate_correlation_id",
    "get_correlation_id",
    "get_logger_for_component",
    "resolve_log_level",
    "set_correlation_id",
]
