"""Logging setup entry point for host applications.

Hosts that already configure structlog skip this; exporter services log
through structlog.get_logger() either way.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Optional

from promexport.infrastructure.observability import configure_structlog as _configure

LOG_FORMAT_ENV = "PROMEXPORT_LOG_FORMAT"


def configure_structlog(
    environment: Optional[str] = None,
    level: Optional[str] = None,
    environ: Mapping[str, str] | None = None,
) -> None:
    """Configure exporter logging.

    Args:
        environment: "production" (JSON) or "development" (console); falls
            back to PROMEXPORT_LOG_FORMAT, then "production".
        level: Minimum level name; falls back to LOG_LEVEL.
        environ: Environment mapping (defaults to os.environ).
    """
    env = os.environ if environ is None else environ
    _configure(
        environment=environment or env.get(LOG_FORMAT_ENV) or "production",
        level=level,
    )


__all__ = ["LOG_FORMAT_ENV", "configure_structlog"]
