"""Export schedule value object.

A schedule is either periodic (timer-driven) or eager (write-driven):
- push_interval_ms > 0: periodic, timeout_ms must not exceed the interval
- push_interval_ms == 0: eager, every recorded measurement flushes
- push_interval_ms < 0: rejected
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from promexport.domain.errors.configuration import (
    InvalidPushIntervalError,
    InvalidTimeoutError,
    TimeoutExceedsIntervalError,
)

DEFAULT_PUSH_INTERVAL_MS = 0
DEFAULT_TIMEOUT_MS = 1000


class ScheduleMode(str, Enum):
    """How export cycles are triggered."""

    PERIODIC = "periodic"
    EAGER = "eager"


@dataclass(frozen=True)
class ExportSchedule:
    """Validated push interval and cycle timeout.

    Attributes:
        push_interval_ms: Milliseconds between cycles; 0 selects eager mode.
        timeout_ms: Milliseconds a single cycle may take before abandonment.
    """

    push_interval_ms: int = DEFAULT_PUSH_INTERVAL_MS
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self) -> None:
        if self.push_interval_ms < 0:
            raise InvalidPushIntervalError(self.push_interval_ms)
        if self.timeout_ms <= 0:
            raise InvalidTimeoutError(self.timeout_ms)
        if self.push_interval_ms > 0 and self.timeout_ms > self.push_interval_ms:
            raise TimeoutExceedsIntervalError(self.timeout_ms, self.push_interval_ms)

    @property
    def mode(self) -> ScheduleMode:
        """Periodic when an interval is set, eager otherwise."""
        if self.push_interval_ms > 0:
            return ScheduleMode.PERIODIC
        return ScheduleMode.EAGER

    @property
    def interval_seconds(self) -> float:
        return self.push_interval_ms / 1000

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000
