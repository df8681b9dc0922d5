"""structlog configuration for hosts that do not configure logging themselves.

Push and scrape failures are never raised into the instrumented application,
so the exporter's log output is where they surface. Production renders one
JSON object per line:

    {"event": "push_failed", "level": "warning", "service": "PushDispatcher",
     "component": "push", "tenant_id": "acme", "status_code": 503,
     "correlation_id": "...", "timestamp": "..."}

The level comes from the `level` argument, else from LOG_LEVEL, else INFO.
"""

import logging
import os
import sys
from typing import Optional, cast

import structlog
from structlog.typing import Processor

from promexport.infrastructure.observability.correlation import correlation_id_processor

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


def resolve_log_level(level: Optional[str] = None) -> int:
    """Map a level name to a logging level; unknown names give INFO."""
    name = (level or os.getenv(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_structlog(
    environment: str = "production", level: Optional[str] = None
) -> None:
    """Configure structlog output for the exporter.

    Args:
        environment: "production" renders JSON, anything else renders
            to the console.
        level: Minimum level name; overrides LOG_LEVEL.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        cast(Processor, correlation_id_processor),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(resolve_log_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger_for_component(
    name: str, component: str = "exporter"
) -> structlog.BoundLogger:
    """Logger bound like LoggingMixin, for module-level code."""
    return structlog.get_logger().bind(service=name, component=component)
