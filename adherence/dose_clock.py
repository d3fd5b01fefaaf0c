"""Classify scheduled doses relative to "now".

Everything here is a pure function of its arguments. Callers that want a live
countdown re-invoke these on every tick; nothing is cached or scheduled.
"""

from __future__ import annotations

import math
from datetime import datetime, time, timedelta, timezone
from typing import Optional

from adherence.schema import DoseStatus, Medication, Urgency

__all__ = [
    "DEFAULT_NEAR_THRESHOLD",
    "NO_TIME_LABEL",
    "classify",
    "describe",
    "dose_status",
    "taken_today",
    "time_until",
    "todays_occurrence",
]

DEFAULT_NEAR_THRESHOLD = timedelta(minutes=30)
NO_TIME_LABEL = "No time set"


def todays_occurrence(scheduled_time: time, now: datetime) -> datetime:
    """``scheduled_time`` on ``now``'s calendar day, in ``now``'s timezone.

    Never rolls over to tomorrow: a dose at 08:00 stays overdue for the rest of
    the day.
    """
    return datetime.combine(now.date(), scheduled_time, tzinfo=now.tzinfo)


def time_until(scheduled_at: datetime, now: datetime) -> timedelta:
    """Signed time from ``now`` to ``scheduled_at``, compared as UTC instants.

    Aware datetimes sharing a ``ZoneInfo`` would otherwise subtract as wall
    clocks, off by the shift on a DST transition day.
    """
    if scheduled_at.tzinfo is None or now.tzinfo is None:
        return scheduled_at - now
    return scheduled_at.astimezone(timezone.utc) - now.astimezone(timezone.utc)


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}" if n == 1 else f"{n} {unit}s"


def _format_minutes(total: int) -> str:
    if total < 60:
        return _plural(total, "minute")
    hours, minutes = divmod(total, 60)
    if minutes == 0:
        return _plural(hours, "hour")
    return f"{_plural(hours, 'hour')} {_plural(minutes, 'minute')}"


def _minutes_until(diff: timedelta) -> int:
    seconds = diff.total_seconds()
    if seconds > 0:
        return math.ceil(seconds / 60)
    # whole minutes elapsed, rounded toward zero
    return -math.floor(-seconds / 60)


def classify(
    scheduled_time: Optional[time],
    now: datetime,
    near_threshold: timedelta = DEFAULT_NEAR_THRESHOLD,
) -> Urgency:
    if scheduled_time is None:
        return Urgency.none
    diff = time_until(todays_occurrence(scheduled_time, now), now)
    if diff <= timedelta(0):
        return Urgency.urgent
    if diff <= near_threshold:
        return Urgency.soon
    return Urgency.normal


def describe(
    scheduled_time: Optional[time],
    now: datetime,
    near_threshold: timedelta = DEFAULT_NEAR_THRESHOLD,
) -> str:
    """Human-readable countdown, e.g. ``"Due in 12 minutes"`` or ``"Overdue by 1 hour"``.

    Depends only on the scheduled time: a dose already taken today still reads
    as overdue. Check ``DoseStatus.taken_today`` before showing the label.
    """
    if scheduled_time is None:
        return NO_TIME_LABEL
    diff = time_until(todays_occurrence(scheduled_time, now), now)
    minutes = _minutes_until(diff)
    if diff == timedelta(0):
        return "Due now"
    if diff < timedelta(0):
        if minutes == 0:
            return "Due now"
        return f"Overdue by {_format_minutes(-minutes)}"
    return f"Due in {_format_minutes(minutes)}"


def taken_today(last_taken: Optional[datetime], now: datetime) -> bool:
    """True if ``last_taken`` falls on ``now``'s calendar day (in ``now``'s timezone)."""
    if last_taken is None:
        return False
    if now.tzinfo is not None and last_taken.tzinfo is not None:
        last_taken = last_taken.astimezone(now.tzinfo)
    return last_taken.date() == now.date()


def dose_status(
    medication: Medication,
    now: datetime,
    near_threshold: timedelta = DEFAULT_NEAR_THRESHOLD,
) -> DoseStatus:
    """Urgency, label and taken-today flag for one medication.

    ``urgency`` and ``label`` follow the schedule alone, so a dose taken late
    stays ``urgent`` for the rest of the day; ``taken_today`` says whether it
    was confirmed.
    """
    scheduled = medication.scheduled_time
    scheduled_at = todays_occurrence(scheduled, now) if scheduled is not None else None
    return DoseStatus(
        medication_id=medication.id,
        urgency=classify(scheduled, now, near_threshold),
        label=describe(scheduled, now, near_threshold),
        scheduled_at=scheduled_at,
        minutes_until=(
            _minutes_until(time_until(scheduled_at, now)) if scheduled_at is not None else None
        ),
        taken_today=taken_today(medication.last_taken, now),
    )
