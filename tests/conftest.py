"""
Pytest configuration and shared fixtures for promexport tests.

Testing Standards:
- All async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async function mocking
- Push gateways are faked with httpx.MockTransport, never real sockets
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

from collections.abc import Iterator

import pytest
import structlog

from promexport.domain.models.metric_data import (
    HistogramValue,
    MetricGroup,
    MetricKind,
    MetricPoint,
    ResourceMetrics,
)
from promexport.domain.models.tenant import TenantContext
from promexport.infrastructure.observability.correlation import set_correlation_id


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from promexport import __version__

    return __version__


@pytest.fixture(autouse=True)
def reset_logging_state() -> Iterator[None]:
    """Undo structlog configuration and correlation ids between tests."""
    yield
    structlog.reset_defaults()
    set_correlation_id("")


@pytest.fixture
def tenant() -> TenantContext:
    return TenantContext(tenant_id="acme")


@pytest.fixture
def sample_resource_metrics() -> ResourceMetrics:
    """A small snapshot with one point of every kind."""
    return ResourceMetrics(
        resource={"service.name": "checkout"},
        groups=(
            MetricGroup(
                points=(
                    MetricPoint(
                        name="requests",
                        kind=MetricKind.COUNTER,
                        value=42,
                        labels={"method": "GET"},
                        description="Handled requests",
                        time=1700000000.5,
                    ),
                    MetricPoint(
                        name="queue_depth",
                        kind=MetricKind.GAUGE,
                        value=3.5,
                        description="Items waiting",
                        time=1700000000.5,
                    ),
                    MetricPoint(
                        name="latency_seconds",
                        kind=MetricKind.HISTOGRAM,
                        value=HistogramValue(
                            boundaries=(0.1, 0.5), counts=(3, 1, 1), sum=1.75
                        ),
                        labels={"route": "/pay"},
                        description="Request latency",
                        time=1700000000.5,
                    ),
                ),
            ),
        ),
    )
