"""Clock and timer collaborators.

The engine never reads the system time or starts threads on its own; it asks a
``Clock`` for "now" and a ``Scheduler`` for one-shot timers. Production code uses
``SystemClock`` and ``ThreadingScheduler``; tests inject stepped fakes.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class SystemClock:
    """Local wall-clock time as an aware datetime."""

    def now(self) -> datetime:
        return datetime.now().astimezone()


class ThreadingScheduler:
    """Run callbacks on daemon ``threading.Timer`` threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(max(delay, 0.0), callback)
        timer.daemon = True
        timer.start()
        logger.debug("Scheduled %s in %.1fs", getattr(callback, "__name__", callback), delay)
        return timer


class IdGenerator:
    """Millisecond-timestamp ids that never repeat within the process.

    Two ids requested in the same millisecond (or after the clock stepped back)
    are bumped past the last one handed out.
    """

    def __init__(self, clock: Clock, floor: int = 0):
        self._clock = clock
        self._last = floor
        self._lock = threading.Lock()

    def observe(self, used_id: int) -> None:
        """Make sure future ids sort after an id loaded from storage."""
        with self._lock:
            self._last = max(self._last, used_id)

    def next_id(self) -> int:
        with self._lock:
            candidate = int(self._clock.now().timestamp() * 1000)
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate
