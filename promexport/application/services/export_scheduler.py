"""Export scheduler: drives collect -> serialize -> dispatch cycles.

The scheduler has two explicit modes, selected by its ExportSchedule:

- PERIODIC (push_interval_ms > 0): a background timer starts one cycle per
  interval. Cycles run as independent tasks, so a slow push does not delay
  the next tick; the dispatcher's concurrency limit bounds the overlap.
- EAGER (push_interval_ms == 0): no timer runs. notify_recorded() is called
  by the instrumentation layer whenever a measurement is recorded and
  starts a cycle immediately.

Every cycle is bounded by the schedule timeout. A cycle that fails or
times out is logged and abandoned; nothing is raised to the caller and the
next cycle acts as the retry.

Note:
    start() and shutdown() belong to the application lifecycle.
    shutdown() is idempotent: a second call only logs a warning.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Optional, Union

from promexport.application.ports.export_sink import ExportSinkPort, PushOutcome
from promexport.application.services.base import LoggingMixin
from promexport.application.services.snapshot_collector import SnapshotCollector
from promexport.domain.models.schedule import ExportSchedule, ScheduleMode
from promexport.infrastructure.exposition.serializer import PrometheusSerializer
from promexport.infrastructure.observability.correlation import begin_export_cycle

SleepFunc = Callable[[float], Awaitable[None]]
FlushHandle = Union["asyncio.Task[bool]", "concurrent.futures.Future[bool]"]


@dataclass
class ExportStats:
    """Counters for export cycles.

    Attributes:
        cycles_started: Cycles begun (timer, eager, forced or final).
        cycles_succeeded: Cycles whose push was delivered.
        cycles_failed: Cycles that errored or got a failed push.
        cycles_timed_out: Cycles abandoned at the timeout.
        cycles_shed: Cycles dropped by the dispatcher's queue bound.
    """

    cycles_started: int = 0
    cycles_succeeded: int = 0
    cycles_failed: int = 0
    cycles_timed_out: int = 0
    cycles_shed: int = 0


class ExportScheduler(LoggingMixin):
    """Timer- or write-driven export of metric snapshots.

    Attributes:
        mode: PERIODIC or EAGER, fixed at construction.
        running: Whether the scheduler accepts triggers.
        stats: Cycle counters.

    Example:
        >>> scheduler = ExportScheduler(
        ...     collector=collector,
        ...     serializer=PrometheusSerializer(tenant),
        ...     sink=dispatcher,
        ...     schedule=ExportSchedule(push_interval_ms=5000, timeout_ms=1000),
        ... )
        >>> await scheduler.start()
        >>> # ... application runs ...
        >>> await scheduler.shutdown()
    """

    def __init__(
        self,
        collector: SnapshotCollector,
        serializer: PrometheusSerializer,
        sink: ExportSinkPort,
        schedule: ExportSchedule,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """Initialize the scheduler.

        Args:
            collector: Snapshot source.
            serializer: Exposition serializer.
            sink: Destination for serialized snapshots.
            schedule: Validated interval/timeout pair.
            sleep: Timer primitive; replaceable with a fake in tests.
        """
        self._collector = collector
        self._serializer = serializer
        self._sink = sink
        self._schedule = schedule
        self._sleep = sleep

        self._running: bool = False
        self._shutdown: bool = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._timer_task: Optional[asyncio.Task[None]] = None
        self._cycles: set[asyncio.Task[bool]] = set()
        self._stats = ExportStats()
        self._init_logger("push")

    @property
    def mode(self) -> ScheduleMode:
        return self._schedule.mode

    @property
    def schedule(self) -> ExportSchedule:
        return self._schedule

    @property
    def running(self) -> bool:
        """Check if the scheduler is running."""
        return self._running

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    @property
    def stats(self) -> ExportStats:
        return self._stats

    @property
    def pending_cycles(self) -> int:
        """Cycles started as tasks that have not finished yet."""
        return len(self._cycles)

    async def start(self) -> None:
        """Start accepting triggers; in periodic mode, start the timer.

        Calling start multiple times is safe (idempotent). A shut down
        scheduler cannot be restarted.
        """
        log = self._log_operation("start", mode=self.mode.value)
        if self._shutdown:
            log.warning("scheduler_start_after_shutdown")
            return
        if self._running:
            return

        self._loop = asyncio.get_running_loop()
        self._running = True
        if self.mode is ScheduleMode.PERIODIC:
            self._timer_task = asyncio.create_task(self._run_timer())
        log.info(
            "scheduler_started",
            push_interval_ms=self._schedule.push_interval_ms,
            timeout_ms=self._schedule.timeout_ms,
        )

    async def _run_timer(self) -> None:
        """Start one cycle per interval until stopped."""
        interval = self._schedule.interval_seconds
        while self._running:
            await self._sleep(interval)
            if not self._running:
                break
            self._spawn_cycle("timer")

    def _spawn_cycle(self, trigger: str) -> "asyncio.Task[bool]":
        """Run a cycle in its own task so its correlation id stays there."""
        task = asyncio.create_task(self._run_cycle(trigger))
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)
        return task

    async def _spawn_and_wait(self, trigger: str) -> bool:
        return await self._spawn_cycle(trigger)

    def notify_recorded(self) -> Optional[FlushHandle]:
        """Flush hook for eager mode, called when a measurement is recorded.

        Starts a cycle right away without waiting for any timer. Safe to
        call from threads other than the scheduler's event loop.

        Returns:
            The flush task (or a concurrent future when called off-loop),
            or None when not in eager mode or not running.
        """
        if self.mode is not ScheduleMode.EAGER or not self._running or self._loop is None:
            return None

        try:
            current_loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        if current_loop is self._loop:
            return self._spawn_cycle("recorded")
        return asyncio.run_coroutine_threadsafe(
            self._spawn_and_wait("recorded"), self._loop
        )

    async def force_flush(self) -> bool:
        """Run one bounded cycle now, in either mode.

        Returns:
            True if the snapshot was delivered.
        """
        if self._shutdown:
            self._log_operation("force_flush").warning("force_flush_after_shutdown")
            return False
        return await self._spawn_cycle("force_flush")

    async def _run_cycle(self, trigger: str) -> bool:
        """Run one collect -> serialize -> dispatch cycle. Never raises."""
        begin_export_cycle()
        log = self._log_operation("export_cycle", trigger=trigger)
        self._stats.cycles_started += 1

        try:
            outcome = await asyncio.wait_for(
                self._export_once(), timeout=self._schedule.timeout_seconds
            )
        except asyncio.TimeoutError:
            self._stats.cycles_timed_out += 1
            log.warning("export_cycle_timed_out", timeout_ms=self._schedule.timeout_ms)
            return False
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._stats.cycles_failed += 1
            log.error("export_cycle_failed", error=str(e), error_type=type(e).__name__)
            return False

        if outcome is PushOutcome.DELIVERED:
            self._stats.cycles_succeeded += 1
            log.debug("export_cycle_completed")
            return True
        if outcome is PushOutcome.SHED:
            self._stats.cycles_shed += 1
        else:
            self._stats.cycles_failed += 1
        return False

    async def _export_once(self) -> PushOutcome:
        result = await self._collector.collect()
        body = self._serializer.serialize(result.resource_metrics)
        return await self._sink.send(body)

    async def shutdown(self) -> None:
        """Stop the timer, flush once, wait for in-flight cycles, release the sink.

        In-flight cycles are allowed to finish rather than being cancelled.
        Calling shutdown twice only logs a warning.
        """
        log = self._log_operation("shutdown")
        if self._shutdown:
            log.warning("scheduler_already_shutdown")
            return

        self._shutdown = True
        self._running = False
        if self._timer_task is not None:
            self._timer_task.cancel()
            try:
                await self._timer_task
            except asyncio.CancelledError:
                pass
            self._timer_task = None

        await self._spawn_cycle("shutdown")

        if self._cycles:
            await asyncio.gather(*list(self._cycles), return_exceptions=True)
        await self._sink.aclose()
        log.info(
            "scheduler_shutdown",
            cycles_started=self._stats.cycles_started,
            cycles_failed=self._stats.cycles_failed,
        )
