"""Correlation IDs for export cycles and scrapes.

A push cycle starts a fresh ID with begin_export_cycle(); the dispatch task
it spawns inherits it through the context. A scrape reuses the scraper's
X-Correlation-ID header when it is usable, so gateway and exporter logs can
be matched.
"""

from collections.abc import Mapping
from contextvars import ContextVar
from typing import Any
from uuid import uuid4

CORRELATION_ID_HEADER = "X-Correlation-ID"
MAX_CORRELATION_ID_LENGTH = 128

_correlation_id: ContextVar[str] = ContextVar("promexport_correlation_id", default="")


def generate_correlation_id() -> str:
    """Return a new UUID4 string."""
    return str(uuid4())


def get_correlation_id() -> str:
    """Return the current correlation ID, or "" outside a cycle or scrape."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id.set(correlation_id)


def begin_export_cycle() -> str:
    """Bind a fresh correlation ID for one push cycle and return it."""
    correlation_id = generate_correlation_id()
    _correlation_id.set(correlation_id)
    return correlation_id


def correlation_id_from_headers(headers: Mapping[str, str]) -> str:
    """Pick the correlation ID for a scrape request.

    The header value is used when it is non-empty, printable and at most
    MAX_CORRELATION_ID_LENGTH characters; otherwise a new ID is generated.

    Args:
        headers: Request headers (case-insensitive mapping from the framework).

    Returns:
        The correlation ID to bind for the scrape.
    """
    candidate = (headers.get(CORRELATION_ID_HEADER) or "").strip()
    if (
        candidate
        and len(candidate) <= MAX_CORRELATION_ID_LENGTH
        and candidate.isprintable()
    ):
        return candidate
    return generate_correlation_id()


def correlation_id_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor adding the current correlation_id.

    An explicitly bound correlation_id is kept.
    """
    correlation_id = _correlation_id.get()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict
