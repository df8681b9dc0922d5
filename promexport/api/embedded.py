"""Embedded scrape listener served by uvicorn.

Used when the host application supplies no router. The app answers every
path through ScrapeEndpoint.handle(), so unknown paths get an empty 404
instead of FastAPI's JSON error body.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Iterator
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, Response

from promexport.api.routes.metrics import ScrapeEndpoint, bind_correlation_id
from promexport.api.transport import EmbeddedListener
from promexport.application.services.base import LoggingMixin
from promexport.domain.errors.configuration import ScrapeListenerStartError

_SERVED_METHODS = ["GET", "HEAD"]
_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
_STARTUP_POLL_SECONDS = 0.01


def create_scrape_app(endpoint: ScrapeEndpoint) -> FastAPI:
    """Build the ASGI app for the embedded listener.

    Args:
        endpoint: Endpoint answering every request.

    Returns:
        FastAPI app with a single catch-all route.
    """
    app = FastAPI(
        title="promexport scrape endpoint",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.api_route("/{path:path}", methods=_ALL_METHODS, include_in_schema=False)
    async def scrape(request: Request) -> Response:
        path = request.url.path
        if path != endpoint.route_path:
            return Response(status_code=404)
        if request.method not in _SERVED_METHODS:
            return Response(status_code=405, headers={"allow": ", ".join(_SERVED_METHODS)})
        bind_correlation_id(request)
        result = await endpoint.handle(path)
        return result.to_response()

    return app


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the host process."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:
        pass


class EmbeddedScrapeServer(LoggingMixin):
    """Runs the scrape app on a dedicated listener inside the current loop.

    Usage:
        server = EmbeddedScrapeServer(endpoint, EmbeddedListener(port=9464))
        await server.start()
        ...
        await server.stop()
    """

    def __init__(self, endpoint: ScrapeEndpoint, listener: EmbeddedListener) -> None:
        self._endpoint = endpoint
        self._listener = listener
        self._app = create_scrape_app(endpoint)
        self._server: Optional[_EmbeddedServer] = None
        self._task: Optional[asyncio.Task[None]] = None
        self._init_logger("pull")

    @property
    def app(self) -> FastAPI:
        return self._app

    @property
    def listener(self) -> EmbeddedListener:
        return self._listener

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Bind the listener and wait until it accepts connections.

        Raises:
            ScrapeListenerStartError: The listener could not be bound.
        """
        if self.running:
            return

        config = uvicorn.Config(
            self._app,
            host=self._listener.hostname,
            port=self._listener.port,
            log_level="warning",
            lifespan="off",
        )
        self._server = _EmbeddedServer(config)
        self._task = asyncio.create_task(self._serve(self._server))

        while not self._server.started:
            if self._task.done():
                self._task.result()
                raise ScrapeListenerStartError(
                    self._listener.hostname, self._listener.port, "server exited"
                )
            await asyncio.sleep(_STARTUP_POLL_SECONDS)

        self._log_operation("start").info(
            "scrape_listener_started",
            hostname=self._listener.hostname,
            port=self._listener.port,
            route_path=self._endpoint.route_path,
        )

    async def _serve(self, server: _EmbeddedServer) -> None:
        # uvicorn exits the process when binding fails
        try:
            await server.serve()
        except SystemExit as e:
            raise ScrapeListenerStartError(
                self._listener.hostname, self._listener.port, f"exit code {e.code}"
            ) from e

    async def stop(self) -> None:
        """Stop accepting connections and wait for the server task."""
        if self._server is None or self._task is None:
            return
        self._server.should_exit = True
        try:
            await self._task
        except ScrapeListenerStartError:
            pass
        self._server = None
        self._task = None
        self._log_operation("stop").info("scrape_listener_stopped")
