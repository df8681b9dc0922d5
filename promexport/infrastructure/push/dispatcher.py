"""Push dispatcher: ships exposition text to a push gateway over HTTP.

Concurrency model:
- At most `concurrency_limit` POSTs are in flight (unbounded when None)
- Sends over the limit wait on an asyncio.Semaphore in FIFO order
- With `max_queue_depth` set, sends beyond that many waiters are shed

Failure semantics:
- Network errors and non-2xx responses are logged and reported as
  PushOutcome.FAILED; nothing is raised to the caller
- Failed pushes are not retried; the next cycle supersedes them since
  exported values are cumulative
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import structlog

from promexport.application.ports.export_sink import ExportSinkPort, PushOutcome
from promexport.application.services.base import LoggingMixin
from promexport.domain.errors.configuration import (
    InvalidConcurrencyLimitError,
    MissingTenantIdError,
)
from promexport.domain.models.tenant import TENANT_HEADER, TenantContext
from promexport.infrastructure.exposition.serializer import EXPOSITION_CONTENT_TYPE

DEFAULT_PUSH_TIMEOUT_SECONDS = 1.0


class PushDispatcher(ExportSinkPort, LoggingMixin):
    """Concurrency-bounded HTTP POST transport for serialized snapshots.

    Usage:
        dispatcher = PushDispatcher(
            url="https://gateway.example.com/metrics",
            tenant=TenantContext("acme"),
            concurrency_limit=4,
        )
        outcome = await dispatcher.send(body)
        await dispatcher.aclose()
    """

    def __init__(
        self,
        url: str,
        tenant: Optional[TenantContext],
        headers: Mapping[str, str] | None = None,
        concurrency_limit: int | None = None,
        max_queue_depth: int | None = None,
        timeout_seconds: float = DEFAULT_PUSH_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            url: Full push gateway URL.
            tenant: Tenant sent as the `x-tenant-key` header. Required.
            headers: Extra request headers.
            concurrency_limit: Max in-flight requests; None for unbounded.
            max_queue_depth: Max sends waiting for a slot; None for unbounded.
            timeout_seconds: Per-request HTTP timeout.
            client: Optional shared client; created and owned when omitted.

        Raises:
            MissingTenantIdError: No tenant given.
            InvalidConcurrencyLimitError: A bound is out of range.
        """
        if tenant is None:
            raise MissingTenantIdError()
        if concurrency_limit is not None and concurrency_limit < 1:
            raise InvalidConcurrencyLimitError("concurrency_limit", concurrency_limit)
        if max_queue_depth is not None and max_queue_depth < 0:
            raise InvalidConcurrencyLimitError("max_queue_depth", max_queue_depth)

        self._url = url
        self._tenant = tenant
        self._headers = self._build_headers(headers or {}, tenant)
        self._concurrency_limit = concurrency_limit
        self._max_queue_depth = max_queue_depth
        self._timeout = timeout_seconds
        self._semaphore = (
            asyncio.Semaphore(concurrency_limit) if concurrency_limit is not None else None
        )
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

        self._in_flight = 0
        self._peak_in_flight = 0
        self._waiting = 0
        self._init_logger("push", tenant_id=tenant.tenant_id)

    @staticmethod
    def _build_headers(headers: Mapping[str, str], tenant: TenantContext) -> dict[str, str]:
        merged = {"content-type": EXPOSITION_CONTENT_TYPE}
        merged.update(
            {k: v for k, v in headers.items() if k.lower() != TENANT_HEADER}
        )
        merged[TENANT_HEADER] = tenant.tenant_id
        return merged

    @property
    def url(self) -> str:
        return self._url

    @property
    def headers(self) -> dict[str, str]:
        """Headers attached to every push (copy)."""
        return dict(self._headers)

    @property
    def concurrency_limit(self) -> int | None:
        return self._concurrency_limit

    @property
    def in_flight(self) -> int:
        """Requests currently being sent."""
        return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        """Highest number of simultaneous requests seen."""
        return self._peak_in_flight

    @property
    def waiting(self) -> int:
        """Sends currently queued for a concurrency slot."""
        return self._waiting

    async def send(self, body: str) -> PushOutcome:
        """POST one serialized snapshot.

        Args:
            body: Exposition text.

        Returns:
            DELIVERED on 2xx, FAILED on error, SHED when the queue is full.
        """
        log = self._log_operation("send", url=self._url)

        if self._should_shed():
            log.warning(
                "push_shed",
                waiting=self._waiting,
                in_flight=self._in_flight,
                max_queue_depth=self._max_queue_depth,
            )
            return PushOutcome.SHED

        async with self._slot():
            return await self._post(body, log)

    def _should_shed(self) -> bool:
        if self._semaphore is None or self._max_queue_depth is None:
            return False
        return self._semaphore.locked() and self._waiting >= self._max_queue_depth

    @asynccontextmanager
    async def _slot(self) -> AsyncIterator[None]:
        """Hold one concurrency slot for the duration of a request."""
        if self._semaphore is not None:
            self._waiting += 1
            try:
                await self._semaphore.acquire()
            finally:
                self._waiting -= 1

        self._in_flight += 1
        self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
        try:
            yield
        finally:
            self._in_flight -= 1
            if self._semaphore is not None:
                self._semaphore.release()

    async def _post(self, body: str, log: structlog.BoundLogger) -> PushOutcome:
        try:
            response = await self._client.post(
                self._url,
                content=body.encode("utf-8"),
                headers=self._headers,
                timeout=self._timeout,
            )
        except Exception as e:
            log.error("push_failed", error=str(e), error_type=type(e).__name__)
            return PushOutcome.FAILED

        if response.is_success:
            log.debug("push_delivered", status_code=response.status_code)
            return PushOutcome.DELIVERED

        log.error("push_failed", status_code=response.status_code)
        return PushOutcome.FAILED

    async def aclose(self) -> None:
        """Close the HTTP client if this dispatcher created it."""
        if self._owns_client:
            await self._client.aclose()
