"""Scrape transport variants.

A pull exporter is bound to exactly one transport, chosen once at
construction:

- EmbeddedListener: the exporter opens its own HTTP listener.
- ExternalRoute: the exporter adds a GET route to a FastAPI router owned
  by the host application and opens no listener.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from fastapi import APIRouter

DEFAULT_HOSTNAME = "0.0.0.0"
DEFAULT_PORT = 9464


@dataclass(frozen=True)
class EmbeddedListener:
    """Dedicated listener served by uvicorn.

    Attributes:
        hostname: Address to bind.
        port: Port to bind.
    """

    hostname: str = DEFAULT_HOSTNAME
    port: int = DEFAULT_PORT


@dataclass(frozen=True)
class ExternalRoute:
    """Route attached to a host-owned FastAPI router.

    Attributes:
        router: The router receiving the scrape route.
    """

    router: APIRouter


ScrapeTransport = Union[EmbeddedListener, ExternalRoute]


def select_transport(
    router: APIRouter | None,
    hostname: str = DEFAULT_HOSTNAME,
    port: int = DEFAULT_PORT,
) -> ScrapeTransport:
    """Pick the transport; a supplied router takes precedence.

    Args:
        router: Host router, if any.
        hostname: Listener address when no router is given.
        port: Listener port when no router is given.

    Returns:
        ExternalRoute when a router is supplied, EmbeddedListener otherwise.
    """
    if router is not None:
        return ExternalRoute(router=router)
    return EmbeddedListener(hostname=hostname, port=port)
