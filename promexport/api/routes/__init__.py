"""API routes."""

from promexport.api.routes.metrics import (
    DEFAULT_ROUTE_PATH,
    ScrapeEndpoint,
    ScrapeResponse,
    attach_scrape_route,
    detach_scrape_route,
    normalize_route_path,
)

__all__: list[str] = [
    "DEFAULT_ROUTE_PATH",
    "ScrapeEndpoint",
    "ScrapeResponse",
    "attach_scrape_route",
    "detach_scrape_route",
    "normalize_route_path",
]
