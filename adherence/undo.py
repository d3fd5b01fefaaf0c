"""Single-slot soft deletion with an expiring undo window."""

from __future__ import annotations

import itertools
import logging
import threading
from datetime import timedelta
from typing import Optional

from adherence.clock import Clock, Scheduler, SystemClock, ThreadingScheduler, TimerHandle
from adherence.schema import PendingDeletion, SymptomEntry

logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD = timedelta(seconds=8)


class UndoableDeletionRegistry:
    """Holds at most one recoverable deletion.

    ``delete`` starts a grace window; the window ends in exactly one of
    ``undo``, ``dismiss``, ``expire`` or being superseded by the next ``delete``.
    Only ``undo`` hands the entry back.
    """

    def __init__(
        self,
        grace_period: timedelta = DEFAULT_GRACE_PERIOD,
        clock: Optional[Clock] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        if grace_period <= timedelta(0):
            raise ValueError("grace_period must be positive")
        self.grace_period = grace_period
        self._clock = clock or SystemClock()
        self._scheduler = scheduler or ThreadingScheduler()
        self._lock = threading.RLock()
        self._tokens = itertools.count(1)
        self._pending: Optional[PendingDeletion] = None
        self._token: Optional[int] = None
        self._timer: Optional[TimerHandle] = None

    # ---------- state ----------------------------------------------------

    @property
    def pending(self) -> Optional[PendingDeletion]:
        """The current pending deletion, or ``None`` once it is gone."""
        with self._lock:
            self._expire_if_due()
            return self._pending

    def __bool__(self) -> bool:
        return self.pending is not None

    # ---------- transitions ----------------------------------------------

    def delete(self, entry: SymptomEntry) -> PendingDeletion:
        with self._lock:
            if self._pending is not None:
                logger.info(
                    "Deletion of symptom %s superseded by %s; discarding permanently",
                    self._pending.entry.id,
                    entry.id,
                )
                self._clear()

            now = self._clock.now()
            token = next(self._tokens)
            self._pending = PendingDeletion(
                entry=entry, deleted_at=now, expires_at=now + self.grace_period
            )
            self._token = token
            self._timer = self._scheduler.call_later(
                self.grace_period.total_seconds(), lambda: self._on_timer(token)
            )
            logger.info("Symptom %s deleted; undo available until %s", entry.id, self._pending.expires_at)
            return self._pending

    def undo(self) -> Optional[SymptomEntry]:
        """Return the pending entry to the caller, or ``None`` if nothing is recoverable."""
        with self._lock:
            self._expire_if_due()
            if self._pending is None:
                return None
            entry = self._pending.entry
            self._clear()
            logger.info("Deletion of symptom %s undone", entry.id)
            return entry

    def dismiss(self) -> Optional[SymptomEntry]:
        """Discard the pending entry now, without waiting for expiry."""
        with self._lock:
            if self._pending is None:
                return None
            entry = self._pending.entry
            self._clear()
            logger.info("Deletion of symptom %s dismissed; discarded permanently", entry.id)
            return entry

    def expire(self) -> Optional[SymptomEntry]:
        with self._lock:
            if self._pending is None:
                return None
            entry = self._pending.entry
            self._clear()
            logger.info("Undo window for symptom %s expired; discarded permanently", entry.id)
            return entry

    # ---------- internals ------------------------------------------------

    def _on_timer(self, token: int) -> None:
        with self._lock:
            if token != self._token:
                logger.warning("Ignoring stale undo timer %s", token)
                return
            self._timer = None
            self.expire()

    def _expire_if_due(self) -> None:
        if self._pending is not None and self._clock.now() >= self._pending.expires_at:
            self.expire()

    def _clear(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._token = None
        self._pending = None
