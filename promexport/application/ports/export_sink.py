"""Export sink port: where serialized push snapshots go."""

from __future__ import annotations

from enum import Enum
from typing import Protocol


class PushOutcome(str, Enum):
    """Result of a single push attempt.

    Values:
        DELIVERED: The endpoint answered with a 2xx status.
        FAILED: Network error or non-2xx response (logged, not raised).
        SHED: Dropped before sending because the wait queue was full.
    """

    DELIVERED = "delivered"
    FAILED = "failed"
    SHED = "shed"


class ExportSinkPort(Protocol):
    """Protocol for shipping exposition text to a remote endpoint."""

    async def send(self, body: str) -> PushOutcome:
        """Ship one serialized snapshot. Must not raise on delivery failure."""
        ...

    async def aclose(self) -> None:
        """Release transport resources."""
        ...


__all__ = ["ExportSinkPort", "PushOutcome"]
