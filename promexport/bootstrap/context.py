"""Process-wide exporter ownership.

ExporterContext is the single owner of the exporters a process runs. It
replaces module-level singletons: the host application creates one context
at startup and keeps it for the process lifetime.

Rules:
- At most one push and one pull exporter are active per context
- The tenant is resolved before anything else is built, so a missing
  tenant never leaves a listener or timer behind
- build_info is recorded once per context, by whichever exporter starts
  first; both exporters then serve the same producer. An exporter that
  fails to start records nothing, so a retry may pass another BuildInfo
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Optional

import httpx
from fastapi.routing import APIRoute

from promexport.api.embedded import EmbeddedScrapeServer
from promexport.api.routes.metrics import ScrapeEndpoint, attach_scrape_route
from promexport.api.transport import EmbeddedListener, ExternalRoute
from promexport.application.ports.metric_producer import MetricProducerPort
from promexport.application.services.base import LoggingMixin
from promexport.application.services.export_scheduler import (
    ExportScheduler,
    FlushHandle,
)
from promexport.application.services.snapshot_collector import (
    SnapshotCollector,
    default_resource,
)
from promexport.bootstrap.handles import PullExporterHandle, PushExporterHandle
from promexport.config.exporter_config import PullExporterConfig, PushExporterConfig
from promexport.domain.errors.configuration import ExporterAlreadyRunningError
from promexport.domain.models.build_info import BuildInfo
from promexport.infrastructure.exposition.serializer import PrometheusSerializer
from promexport.infrastructure.producers.build_info import BuildInfoProducer
from promexport.infrastructure.push.dispatcher import PushDispatcher


class ExporterContext(LoggingMixin):
    """Owner of the push and pull exporters of one process.

    Example:
        >>> context = ExporterContext(producers=[PrometheusClientProducer()])
        >>> handle = await context.init_push(
        ...     PushExporterConfig(url="https://gw/metrics", tenant_id="acme")
        ... )
        >>> context.metrics_recorded()
        >>> await context.shutdown()
    """

    def __init__(
        self,
        producers: Sequence[MetricProducerPort] = (),
        resource: Mapping[str, str] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the context.

        Args:
            producers: Metric producers shared by both exporters.
            resource: Resource attributes; defaults to default_resource().
            environ: Environment mapping for tenant and resource fallbacks.
        """
        self._producers: list[MetricProducerPort] = list(producers)
        self._environ = environ
        self._resource = (
            dict(resource) if resource is not None else default_resource(environ)
        )
        self._build_info: Optional[BuildInfoProducer] = None
        self._push: Optional[PushExporterHandle] = None
        self._pull: Optional[PullExporterHandle] = None
        self._init_logger("bootstrap")

    @property
    def push(self) -> Optional[PushExporterHandle]:
        """The active push exporter, if any."""
        if self._push is not None and self._push.active:
            return self._push
        return None

    @property
    def pull(self) -> Optional[PullExporterHandle]:
        """The active pull exporter, if any."""
        if self._pull is not None and self._pull.active:
            return self._pull
        return None

    @property
    def build_info_recorded(self) -> bool:
        return self._build_info is not None

    def _build_info_producer(self, build_info: BuildInfo) -> BuildInfoProducer:
        """The recorded producer, or a new unrecorded one for `build_info`."""
        if self._build_info is not None:
            return self._build_info
        return BuildInfoProducer(build_info)

    def _record_build_info(
        self, producer: BuildInfoProducer, build_info: BuildInfo
    ) -> None:
        """Keep `producer` once its exporter has started."""
        if self._build_info is None:
            self._build_info = producer
        elif build_info.labels and build_info != self._build_info.build_info:
            self._log_operation("record_build_info").warning(
                "build_info_already_recorded",
                recorded=self._build_info.build_info.labels,
                ignored=build_info.labels,
            )

    def _collector(self, build_info: BuildInfoProducer) -> SnapshotCollector:
        return SnapshotCollector(
            producers=[*self._producers, build_info],
            resource=self._resource,
        )

    async def init_push(
        self,
        config: PushExporterConfig,
        client: httpx.AsyncClient | None = None,
    ) -> PushExporterHandle:
        """Start the push exporter.

        Args:
            config: Push configuration.
            client: Optional HTTP client for the dispatcher.

        Returns:
            Handle of the running exporter.

        Raises:
            MissingTenantIdError: No tenant from config or environment.
            ExporterAlreadyRunningError: A push exporter is already active.
        """
        tenant = config.resolve_tenant(self._environ)
        if self.push is not None:
            raise ExporterAlreadyRunningError("push")

        build_info = self._build_info_producer(config.build_info)
        schedule = config.schedule
        dispatcher = PushDispatcher(
            url=config.url,
            tenant=tenant,
            headers=config.headers,
            concurrency_limit=config.concurrency_limit,
            max_queue_depth=config.max_queue_depth,
            timeout_seconds=schedule.timeout_seconds,
            client=client,
        )
        scheduler = ExportScheduler(
            collector=self._collector(build_info),
            serializer=PrometheusSerializer(tenant),
            sink=dispatcher,
            schedule=schedule,
        )
        await scheduler.start()
        self._record_build_info(build_info, config.build_info)

        self._push = PushExporterHandle(scheduler, dispatcher)
        self._log_operation("init_push").info(
            "push_exporter_started",
            url=config.url,
            tenant_id=tenant.tenant_id,
            mode=schedule.mode.value,
        )
        return self._push

    async def init_pull(self, config: PullExporterConfig) -> PullExporterHandle:
        """Start the scrape endpoint.

        With a router in the config the route is attached to it and no
        listener opens; otherwise an embedded listener is started.

        Args:
            config: Pull configuration.

        Returns:
            Handle of the running endpoint.

        Raises:
            MissingTenantIdError: No tenant from config or environment.
            ExporterAlreadyRunningError: A pull exporter is already active.
            ScrapeListenerStartError: The embedded listener could not bind.
        """
        tenant = config.resolve_tenant(self._environ)
        if self.pull is not None:
            raise ExporterAlreadyRunningError("pull")

        build_info = self._build_info_producer(config.build_info)
        endpoint = ScrapeEndpoint(
            collector=self._collector(build_info),
            serializer=PrometheusSerializer(
                tenant, append_timestamp=config.append_timestamp
            ),
            route_path=config.route_path,
        )

        transport = config.transport
        server: Optional[EmbeddedScrapeServer] = None
        route: Optional[APIRoute] = None
        if isinstance(transport, ExternalRoute):
            route = attach_scrape_route(transport.router, endpoint)
        elif isinstance(transport, EmbeddedListener):
            server = EmbeddedScrapeServer(endpoint, transport)
            await server.start()
        self._record_build_info(build_info, config.build_info)

        self._pull = PullExporterHandle(endpoint, transport, server, route)
        self._log_operation("init_pull").info(
            "pull_exporter_started",
            route_path=endpoint.route_path,
            tenant_id=tenant.tenant_id,
            transport=type(transport).__name__,
        )
        return self._pull

    async def stop_pull(self) -> None:
        """Stop the scrape endpoint; warns when none is running."""
        pull = self.pull
        if pull is None:
            self._log_operation("stop_pull").warning("pull_exporter_not_running")
            return
        await pull.stop()
        self._pull = None

    def metrics_recorded(self) -> Optional[FlushHandle]:
        """Forward a recorded-measurement signal to the push exporter."""
        push = self.push
        if push is None:
            return None
        return push.metrics_recorded()

    async def shutdown(self) -> None:
        """Shut down every active exporter."""
        push = self.push
        if push is not None:
            await push.shutdown()
        self._push = None
        if self.pull is not None:
            await self.stop_pull()
