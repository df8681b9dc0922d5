"""Unit tests for ExporterContext ownership rules.

Push gateways are faked with httpx.MockTransport; the embedded listener's
start/stop are patched so no socket is bound.
"""

from collections.abc import AsyncIterator, Iterator
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi import APIRouter, FastAPI
from structlog.testing import capture_logs

from promexport.api.embedded import EmbeddedScrapeServer
from promexport.api.transport import EmbeddedListener, ExternalRoute
from promexport.bootstrap import ExporterContext
from promexport.config import PullExporterConfig, PushExporterConfig
from promexport.domain.errors import (
    ExporterAlreadyRunningError,
    MissingTenantIdError,
    ScrapeListenerStartError,
)
from promexport.domain.models import BuildInfo, ScheduleMode
from tests.helpers import StaticProducer

GATEWAY_URL = "https://gateway.example.com/push"


@pytest.fixture
def pushed() -> list[httpx.Request]:
    return []


@pytest.fixture
async def gateway(pushed: list[httpx.Request]) -> AsyncIterator[httpx.AsyncClient]:
    async def handler(request: httpx.Request) -> httpx.Response:
        pushed.append(request)
        return httpx.Response(200)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        yield client


@pytest.fixture
def patched_listener() -> Iterator[tuple[AsyncMock, AsyncMock]]:
    with patch.object(
        EmbeddedScrapeServer, "start", new_callable=AsyncMock
    ) as start, patch.object(EmbeddedScrapeServer, "stop", new_callable=AsyncMock) as stop:
        yield start, stop


def _context(environ: dict[str, str] | None = None) -> ExporterContext:
    return ExporterContext(
        producers=[StaticProducer.gauge("up", 1)],
        resource={"service.name": "api"},
        environ=environ or {},
    )


async def _scrape(router: APIRouter, path: str = "/metrics") -> httpx.Response:
    app = FastAPI()
    app.include_router(router)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://host.test"
    ) as client:
        return await client.get(path)


class TestInitPush:
    """Tests for init_push."""

    @pytest.mark.asyncio
    async def test_missing_tenant_prevents_init(self, gateway: httpx.AsyncClient) -> None:
        context = _context()

        with pytest.raises(MissingTenantIdError) as exc_info:
            await context.init_push(PushExporterConfig(url=GATEWAY_URL), client=gateway)

        assert exc_info.value.env_var == "MASSIVE_DSO_TENANT_ID"
        assert context.push is None
        assert not context.build_info_recorded

    @pytest.mark.asyncio
    async def test_eager_push_sends_on_record(
        self, gateway: httpx.AsyncClient, pushed: list[httpx.Request]
    ) -> None:
        context = _context(environ={"MASSIVE_DSO_TENANT_ID": "acme"})
        handle = await context.init_push(
            PushExporterConfig(url=GATEWAY_URL, build_info=BuildInfo({"version": "1.0.0"})),
            client=gateway,
        )

        flush = context.metrics_recorded()
        assert flush is not None
        assert await flush is True

        assert handle.mode is ScheduleMode.EAGER
        (request,) = pushed
        assert request.headers["x-tenant-key"] == "acme"
        body = request.content.decode()
        assert 'build_info{tenant_id="acme",version="1.0.0"} 1.0' in body
        assert 'up{tenant_id="acme"} 1.0' in body
        await context.shutdown()

    @pytest.mark.asyncio
    async def test_second_init_push_raises(self, gateway: httpx.AsyncClient) -> None:
        context = _context()
        config = PushExporterConfig(url=GATEWAY_URL, tenant_id="acme")
        await context.init_push(config, client=gateway)

        with pytest.raises(ExporterAlreadyRunningError, match="init_push"):
            await context.init_push(config, client=gateway)

        await context.shutdown()

    @pytest.mark.asyncio
    async def test_init_push_after_shutdown_allowed(self, gateway: httpx.AsyncClient) -> None:
        context = _context()
        config = PushExporterConfig(url=GATEWAY_URL, tenant_id="acme")
        first = await context.init_push(config, client=gateway)
        await first.shutdown()

        second = await context.init_push(config, client=gateway)

        assert second is not first
        assert context.push is second
        await context.shutdown()

    @pytest.mark.asyncio
    async def test_metrics_recorded_without_push_is_noop(self) -> None:
        assert _context().metrics_recorded() is None

    @pytest.mark.asyncio
    async def test_dispatcher_configured_from_config(self, gateway: httpx.AsyncClient) -> None:
        context = _context()
        handle = await context.init_push(
            PushExporterConfig(
                url=GATEWAY_URL,
                tenant_id="acme",
                headers={"authorization": "Bearer t"},
                push_interval_ms=60_000,
                concurrency_limit=3,
            ),
            client=gateway,
        )

        assert handle.mode is ScheduleMode.PERIODIC
        assert handle.dispatcher.concurrency_limit == 3
        assert handle.dispatcher.headers["authorization"] == "Bearer t"
        await context.shutdown()


class TestInitPull:
    """Tests for init_pull and stop_pull."""

    @pytest.mark.asyncio
    async def test_missing_tenant_opens_no_listener(
        self, patched_listener: tuple[AsyncMock, AsyncMock]
    ) -> None:
        start, _ = patched_listener
        context = _context(environ={"MASSIVE_DSO_TENANT_ID": "push-only"})

        with pytest.raises(MissingTenantIdError) as exc_info:
            await context.init_pull(PullExporterConfig())

        assert exc_info.value.env_var == "MASSIVE_TENANT_ID"
        start.assert_not_awaited()
        assert context.pull is None

    @pytest.mark.asyncio
    async def test_embedded_listener_started(
        self, patched_listener: tuple[AsyncMock, AsyncMock]
    ) -> None:
        start, stop = patched_listener
        context = _context(environ={"MASSIVE_TENANT_ID": "acme"})

        handle = await context.init_pull(PullExporterConfig(hostname="127.0.0.1", port=9100))

        start.assert_awaited_once()
        assert handle.transport == EmbeddedListener("127.0.0.1", 9100)
        assert handle.server is not None
        await context.stop_pull()
        stop.assert_awaited_once()
        assert context.pull is None

    @pytest.mark.asyncio
    async def test_router_route_attached(
        self, patched_listener: tuple[AsyncMock, AsyncMock]
    ) -> None:
        start, _ = patched_listener
        router = APIRouter()
        context = _context()

        handle = await context.init_pull(
            PullExporterConfig(
                tenant_id="acme",
                router=router,
                route_path="prom",
                build_info=BuildInfo({"version": "2.0.0"}),
            )
        )
        response = await _scrape(router, "/prom")

        start.assert_not_awaited()
        assert isinstance(handle.transport, ExternalRoute)
        assert handle.route_path == "/prom"
        assert response.status_code == 200
        assert 'build_info{tenant_id="acme",version="2.0.0"} 1.0' in response.text
        await context.shutdown()

    @pytest.mark.asyncio
    async def test_second_init_pull_raises(self) -> None:
        context = _context()
        config = PullExporterConfig(tenant_id="acme", router=APIRouter())
        await context.init_pull(config)

        with pytest.raises(ExporterAlreadyRunningError, match="init_pull"):
            await context.init_pull(config)

    @pytest.mark.asyncio
    async def test_stop_pull_when_not_running_warns(self) -> None:
        with capture_logs() as logs:
            context = _context()
            await context.stop_pull()

        assert [e["event"] for e in logs] == ["pull_exporter_not_running"]
        assert logs[0]["log_level"] == "warning"

    @pytest.mark.asyncio
    async def test_reinit_after_stop(self) -> None:
        context = _context()
        await context.init_pull(PullExporterConfig(tenant_id="acme", router=APIRouter()))
        await context.stop_pull()

        handle = await context.init_pull(
            PullExporterConfig(tenant_id="acme", router=APIRouter())
        )

        assert context.pull is handle

    @pytest.mark.asyncio
    async def test_stop_detaches_route_and_reinit_serves_new_tenant(self) -> None:
        router = APIRouter()
        context = _context()
        await context.init_pull(PullExporterConfig(tenant_id="acme", router=router))
        await context.stop_pull()

        stopped = await _scrape(router)
        await context.init_pull(PullExporterConfig(tenant_id="other", router=router))
        response = await _scrape(router)

        assert stopped.status_code == 404
        assert len(router.routes) == 1
        assert 'up{tenant_id="other"} 1.0' in response.text
        assert "acme" not in response.text
        await context.shutdown()


class TestBuildInfoRecording:
    """build_info is recorded once per context."""

    @pytest.mark.asyncio
    async def test_first_exporter_wins(self, gateway: httpx.AsyncClient) -> None:
        router = APIRouter()

        with capture_logs() as logs:
            context = _context()
            await context.init_push(
                PushExporterConfig(
                    url=GATEWAY_URL, tenant_id="acme", build_info=BuildInfo({"version": "1"})
                ),
                client=gateway,
            )
            await context.init_pull(
                PullExporterConfig(
                    tenant_id="acme", router=router, build_info=BuildInfo({"version": "2"})
                )
            )

        response = await _scrape(router)
        assert 'build_info{tenant_id="acme",version="1"} 1.0' in response.text
        assert 'version="2"' not in response.text
        assert any(e["event"] == "build_info_already_recorded" for e in logs)
        await context.shutdown()

    @pytest.mark.asyncio
    async def test_failed_start_records_nothing(
        self, patched_listener: tuple[AsyncMock, AsyncMock]
    ) -> None:
        start, _ = patched_listener
        start.side_effect = [ScrapeListenerStartError("127.0.0.1", 9464, "in use"), None]

        with capture_logs() as logs:
            context = _context()
            with pytest.raises(ScrapeListenerStartError):
                await context.init_pull(
                    PullExporterConfig(tenant_id="acme", build_info=BuildInfo({"version": "bad"}))
                )
            recorded_after_failure = context.build_info_recorded
            handle = await context.init_pull(
                PullExporterConfig(tenant_id="acme", build_info=BuildInfo({"version": "good"}))
            )

        response = await handle.endpoint.scrape()
        assert not recorded_after_failure
        assert context.build_info_recorded
        assert 'version="good"' in response.body
        assert 'version="bad"' not in response.body
        assert not any(e["event"] == "build_info_already_recorded" for e in logs)
        await context.shutdown()
