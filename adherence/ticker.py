from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

from adherence.clock import Clock, Scheduler, SystemClock, ThreadingScheduler, TimerHandle
from adherence.config import EngineSettings, get_settings

logger = logging.getLogger(__name__)

TickCallback = Callable[[datetime], None]


class RefreshTicker:
    """Periodic "recompute derived views" signal.

    A tick carries only the current time. It never touches stored data, so
    observers should recompute urgency labels and must not persist anything.
    Each ``start`` begins a new timer chain; a timer from an earlier chain
    neither ticks nor reschedules.
    """

    def __init__(
        self,
        interval: Optional[float] = None,
        clock: Optional[Clock] = None,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[EngineSettings] = None,
    ):
        if interval is None:
            interval = (settings or get_settings()).tick_interval_seconds
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._clock = clock or SystemClock()
        self._scheduler = scheduler or ThreadingScheduler()
        self._subscribers: List[TickCallback] = []
        self._timer: Optional[TimerHandle] = None
        self._generation = 0
        self._running = False
        self._lock = threading.RLock()

    @property
    def running(self) -> bool:
        return self._running

    def subscribe(self, callback: TickCallback) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._generation += 1
            self._schedule(self._generation)

    def stop(self) -> None:
        with self._lock:
            self._running = False
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def tick(self) -> datetime:
        """Notify every subscriber once with the current time."""
        now = self._clock.now()
        with self._lock:
            subscribers = list(self._subscribers)
        logger.debug("Refresh tick at %s for %d subscriber(s)", now, len(subscribers))
        for callback in subscribers:
            callback(now)
        return now

    def _is_current(self, generation: int) -> bool:
        return self._running and generation == self._generation

    def _schedule(self, generation: int) -> None:
        self._timer = self._scheduler.call_later(self.interval, lambda: self._fire(generation))

    def _fire(self, generation: int) -> None:
        with self._lock:
            if not self._is_current(generation):
                logger.debug("Ignoring stale refresh timer from chain %s", generation)
                return
            self._timer = None
        try:
            self.tick()
        finally:
            with self._lock:
                if self._is_current(generation):
                    self._schedule(generation)
