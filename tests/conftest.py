import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest


class FakeHandle:
    def __init__(self, due: datetime, callback):
        """
        Timer handle returned by ``FakeScheduler.call_later``.

        Parameters:
            due: Clock time at which the callback becomes runnable.
            callback: Zero-argument callable to run when due.
        """
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeClock:
    """Stepped clock; time only moves when ``advance`` is called."""

    def __init__(self, start: datetime):
        self.current = start
        self.scheduler = None

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta) -> datetime:
        """
        Move time forward and fire any timers that became due.

        Parameters:
            **delta: Keyword arguments accepted by ``datetime.timedelta``.

        Returns:
            datetime: The new current time.
        """
        self.current = self.current + timedelta(**delta)
        if self.scheduler is not None:
            self.scheduler.run_due()
        return self.current


class FakeScheduler:
    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.handles: list[FakeHandle] = []
        clock.scheduler = self

    def call_later(self, delay: float, callback) -> FakeHandle:
        handle = FakeHandle(self.clock.now() + timedelta(seconds=delay), callback)
        self.handles.append(handle)
        return handle

    @property
    def active(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled]

    def run_due(self) -> None:
        # callbacks may schedule new timers, so re-scan until nothing is due
        while True:
            due = [h for h in self.active if h.due <= self.clock.now()]
            if not due:
                return
            for handle in due:
                handle.cancelled = True
                handle.callback()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def scheduler(clock) -> FakeScheduler:
    return FakeScheduler(clock)
