"""Pytest configuration and shared fixtures for the test suite."""

from collections.abc import Callable

import pytest

from cacheit.observability.metrics import MetricsCollector


class ManualCall:
    """A call scheduled on a ManualScheduler."""

    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.ran = False

    def cancel(self) -> None:
        self.cancelled = True

    def run(self) -> None:
        self.ran = True
        self.callback()


class ManualScheduler:
    """Scheduler driven by a fake clock; nothing runs until advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.calls: list[ManualCall] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualCall:
        call = ManualCall(self.now + delay, callback)
        self.calls.append(call)
        return call

    @property
    def pending(self) -> list[ManualCall]:
        return [call for call in self.calls if not call.cancelled and not call.ran]

    def advance_ms(self, milliseconds: float) -> None:
        """Move the clock forward and run every call that became due."""
        self.now += milliseconds / 1000
        due = sorted(
            (call for call in self.pending if call.when <= self.now),
            key=lambda call: call.when,
        )
        for call in due:
            call.run()


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Create a manual scheduler with the clock at zero."""
    return ManualScheduler()


@pytest.fixture
def metrics() -> MetricsCollector:
    """Create a disabled metrics collector so tests don't touch global counters."""
    return MetricsCollector(enabled=False)
