"""Scrape endpoint for Prometheus pull mode.

The endpoint is transport-neutral: `handle(path)` maps a request path to a
ScrapeResponse. FastAPI routes (host router or embedded listener) only
translate that response.

Behavior:
- Only the configured route path (default /metrics) collects
- Any other path: 404 with an empty body and no collection
- A closed endpoint answers 404 on every path
- Collection or serialization failure: 500 with a one-line diagnostic;
  exception details go to the log only
- Collection errors for individual streams are logged by the collector;
  the remaining streams are still served
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import APIRouter, Request, Response
from fastapi.routing import APIRoute

from promexport.application.services.base import LoggingMixin
from promexport.application.services.snapshot_collector import SnapshotCollector
from promexport.infrastructure.exposition.serializer import (
    EXPOSITION_CONTENT_TYPE,
    PrometheusSerializer,
)
from promexport.infrastructure.observability.correlation import (
    correlation_id_from_headers,
    set_correlation_id,
)

DEFAULT_ROUTE_PATH = "/metrics"
FAILURE_BODY = "# failed to export metrics\n"
FAILURE_CONTENT_TYPE = "text/plain; charset=utf-8"


def normalize_route_path(route_path: Optional[str]) -> str:
    """Default to /metrics and make sure the path starts with a slash."""
    path = route_path or DEFAULT_ROUTE_PATH
    return path if path.startswith("/") else f"/{path}"


@dataclass(frozen=True)
class ScrapeResponse:
    """Transport-neutral scrape response.

    Attributes:
        status_code: HTTP status.
        body: Response body text.
        content_type: Content type, None for empty bodies.
    """

    status_code: int
    body: str = ""
    content_type: Optional[str] = None

    def to_response(self) -> Response:
        """Convert to a FastAPI/Starlette response."""
        return Response(
            content=self.body,
            status_code=self.status_code,
            media_type=self.content_type,
        )


NOT_FOUND = ScrapeResponse(status_code=404)


class ScrapeEndpoint(LoggingMixin):
    """Collects and serializes a fresh snapshot per matching request.

    Stateless per request: concurrent scrapes each get their own snapshot.
    """

    def __init__(
        self,
        collector: SnapshotCollector,
        serializer: PrometheusSerializer,
        route_path: Optional[str] = DEFAULT_ROUTE_PATH,
    ) -> None:
        """Initialize the endpoint.

        Args:
            collector: Snapshot source.
            serializer: Exposition serializer.
            route_path: Path served; normalized to start with '/'.
        """
        self._collector = collector
        self._serializer = serializer
        self._route_path = normalize_route_path(route_path)
        self._closed = False
        self._init_logger("pull")

    @property
    def route_path(self) -> str:
        return self._route_path

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop serving; later requests get 404 without collecting."""
        self._closed = True

    async def handle(self, path: str) -> ScrapeResponse:
        """Answer a request for `path`.

        Args:
            path: Request path without query string.

        Returns:
            404 for other paths or once closed, otherwise the scrape result.
        """
        if self._closed or path != self._route_path:
            return NOT_FOUND
        return await self.scrape()

    async def scrape(self) -> ScrapeResponse:
        """Collect, serialize and wrap a snapshot. Never raises."""
        log = self._log_operation("scrape", route_path=self._route_path)
        try:
            result = await self._collector.collect()
            body = self._serializer.serialize(result.resource_metrics)
        except Exception as e:
            log.error("scrape_failed", error=str(e), error_type=type(e).__name__)
            return ScrapeResponse(
                status_code=500,
                body=FAILURE_BODY,
                content_type=FAILURE_CONTENT_TYPE,
            )

        log.debug("scrape_served", error_count=len(result.errors), bytes=len(body))
        return ScrapeResponse(
            status_code=200,
            body=body,
            content_type=EXPOSITION_CONTENT_TYPE,
        )


def bind_correlation_id(request: Request) -> None:
    """Use the caller's X-Correlation-ID, or a fresh one."""
    set_correlation_id(correlation_id_from_headers(request.headers))


def attach_scrape_route(router: APIRouter, endpoint: ScrapeEndpoint) -> APIRoute:
    """Add the scrape route to a host-owned router.

    Only the route path is registered; every other path stays with the
    host application.

    Args:
        router: Router owned by the host application.
        endpoint: Endpoint serving the route.

    Returns:
        The registered route, for detach_scrape_route().
    """

    @router.get(
        endpoint.route_path,
        summary="Prometheus metrics endpoint",
        description="Returns metrics in Prometheus exposition format for scraping.",
        response_class=Response,
        responses={
            200: {
                "description": "Metrics in Prometheus format",
                "content": {"text/plain": {}},
            }
        },
    )
    async def get_metrics(request: Request) -> Response:
        if endpoint.closed:
            return NOT_FOUND.to_response()
        bind_correlation_id(request)
        scrape = await endpoint.scrape()
        return scrape.to_response()

    return router.routes[-1]  # type: ignore[return-value]


def detach_scrape_route(router: APIRouter, route: APIRoute) -> None:
    """Remove a route added by attach_scrape_route(); no-op if already gone.

    A host app that copied the route with include_router() keeps its copy;
    that copy answers 404 once the endpoint is closed.
    """
    if route in router.routes:
        router.routes.remove(route)
