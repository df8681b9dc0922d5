"""Handles returned to the host application by ExporterContext."""

from __future__ import annotations

from typing import Optional

from fastapi.routing import APIRoute

from promexport.api.embedded import EmbeddedScrapeServer
from promexport.api.routes.metrics import ScrapeEndpoint, detach_scrape_route
from promexport.api.transport import ExternalRoute, ScrapeTransport
from promexport.application.services.export_scheduler import (
    ExportScheduler,
    ExportStats,
    FlushHandle,
)
from promexport.domain.models.schedule import ScheduleMode
from promexport.infrastructure.push.dispatcher import PushDispatcher


class PushExporterHandle:
    """Running push exporter."""

    def __init__(self, scheduler: ExportScheduler, dispatcher: PushDispatcher) -> None:
        self._scheduler = scheduler
        self._dispatcher = dispatcher

    @property
    def mode(self) -> ScheduleMode:
        return self._scheduler.mode

    @property
    def stats(self) -> ExportStats:
        return self._scheduler.stats

    @property
    def dispatcher(self) -> PushDispatcher:
        return self._dispatcher

    @property
    def active(self) -> bool:
        return not self._scheduler.is_shutdown

    def metrics_recorded(self) -> Optional[FlushHandle]:
        """Signal a recorded measurement; flushes immediately in eager mode."""
        return self._scheduler.notify_recorded()

    async def force_flush(self) -> bool:
        return await self._scheduler.force_flush()

    async def shutdown(self) -> None:
        await self._scheduler.shutdown()


class PullExporterHandle:
    """Running scrape endpoint.

    stop() closes the endpoint, removes an ExternalRoute's route from the
    host router and shuts down an embedded listener.
    """

    def __init__(
        self,
        endpoint: ScrapeEndpoint,
        transport: ScrapeTransport,
        server: Optional[EmbeddedScrapeServer] = None,
        route: Optional[APIRoute] = None,
    ) -> None:
        self._endpoint = endpoint
        self._transport = transport
        self._server = server
        self._route = route
        self._stopped = False

    @property
    def route_path(self) -> str:
        return self._endpoint.route_path

    @property
    def transport(self) -> ScrapeTransport:
        return self._transport

    @property
    def endpoint(self) -> ScrapeEndpoint:
        return self._endpoint

    @property
    def server(self) -> Optional[EmbeddedScrapeServer]:
        return self._server

    @property
    def active(self) -> bool:
        return not self._stopped

    async def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        self._endpoint.close()
        if self._route is not None and isinstance(self._transport, ExternalRoute):
            detach_scrape_route(self._transport.router, self._route)
        if self._server is not None:
            await self._server.stop()
