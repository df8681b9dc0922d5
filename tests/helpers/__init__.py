"""Test helpers for promexport tests.

This package contains reusable test utilities and fake implementations
for dependency injection in unit tests.

Helpers:
    FakeTimer: Scripted replacement for asyncio.sleep in the scheduler
    StaticProducer: Producer returning fixed points
    FailingProducer: Producer raising on every collect
    wait_until: Poll the event loop until a condition holds

Usage:
    from tests.helpers import FakeTimer, StaticProducer
"""

from tests.helpers.fake_producers import FailingProducer, StaticProducer
from tests.helpers.fake_timer import FakeTimer, wait_until

__all__ = ["FailingProducer", "FakeTimer", "StaticProducer", "wait_until"]
