"""FakeTimer - scripted sleep for deterministic scheduler tests.

The scheduler's timer loop awaits an injected sleep function between
cycles. FakeTimer lets a test decide how many intervals elapse: each call
returns immediately until the tick budget is spent, after which it blocks
until cancelled (as the scheduler does on shutdown).

    >>> timer = FakeTimer(ticks=3)
    >>> scheduler = ExportScheduler(..., sleep=timer.sleep)
    >>> await scheduler.start()
    >>> await wait_until(lambda: scheduler.stats.cycles_started == 3)
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable


class FakeTimer:
    """Sleep replacement with a fixed number of instant ticks.

    Attributes:
        requested: Every duration the caller asked to sleep for.
    """

    def __init__(self, ticks: int) -> None:
        self._remaining = ticks
        self.requested: list[float] = []

    @property
    def remaining(self) -> int:
        return self._remaining

    def add_ticks(self, ticks: int) -> None:
        self._remaining += ticks

    async def sleep(self, seconds: float) -> None:
        self.requested.append(seconds)
        while self._remaining == 0:
            await asyncio.sleep(0.001)
        self._remaining -= 1
        await asyncio.sleep(0)


async def wait_until(
    predicate: Callable[[], bool], timeout: float = 2.0, step: float = 0.001
) -> None:
    """Yield to the event loop until predicate() is true.

    Raises:
        AssertionError: The condition did not hold within `timeout` seconds.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(step)
