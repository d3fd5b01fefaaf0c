from __future__ import annotations

from datetime import datetime, time, timezone
from enum import Enum
from typing import Optional

from dateutil.parser import parse
from pydantic import BaseModel, ConfigDict, field_serializer, field_validator

__all__ = [
    "SYMPTOM_SUGGESTIONS",
    "ActivityItem",
    "ActivityKind",
    "DoseStatus",
    "Medication",
    "PendingDeletion",
    "Severity",
    "SymptomEntry",
    "Urgency",
    "parse_time_of_day",
    "to_aware",
]

SYMPTOM_SUGGESTIONS = (
    "Fatigue",
    "Headache",
    "Nausea",
    "Cough",
    "Dizziness",
    "Sore Throat",
    "Shortness of Breath",
    "Chest Pain",
    "Back Pain",
    "Insomnia",
)


class Severity(str, Enum):
    """Severity levels a patient can pick for a symptom."""

    mild = "mild"
    moderate = "moderate"
    severe = "severe"

    @classmethod
    def _missing_(cls, value: object) -> "Severity":
        if not isinstance(value, str):
            raise ValueError(f"Unknown severity: {value}")
        val = value.strip().lower()
        synonyms = {
            "slight": "mild",
            "light": "mild",
            "average": "moderate",
            "noticeable": "moderate",
            "strong": "severe",
            "intense": "severe",
            "awful": "severe",
            "terrible": "severe",
        }
        if val in synonyms:
            return cls(synonyms[val])
        for member in cls:
            if member.value == val:
                return member
        return None


class Urgency(str, Enum):
    """How close a scheduled dose is, relative to now."""

    none = "none"
    normal = "normal"
    soon = "soon"
    urgent = "urgent"


class ActivityKind(str, Enum):
    medication_taken = "medication-taken"
    symptom_logged = "symptom-logged"


def to_aware(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware; naive values are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _parse_instant(v: datetime | str | None) -> datetime | None:
    if v is None or v == "":
        return None
    if isinstance(v, str):
        v = parse(v)
    return to_aware(v)


def parse_time_of_day(value: time | str | None) -> Optional[time]:
    """Parse an ``HH:MM`` wall-clock string. Blank means "no time set"."""
    if value is None:
        return None
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    text = str(value).strip()
    if not text:
        return None
    hours, sep, minutes = text.partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit() or len(minutes) != 2:
        raise ValueError(f"Invalid time of day {value!r}, expected HH:MM")
    return time(int(hours), int(minutes))


def _strip_optional(v: str | None) -> str | None:
    if v is None:
        return None
    v = str(v).strip()
    return v or None


class Medication(BaseModel):
    """A medication on the patient's list."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    dosage: str
    frequency: str
    instructions: Optional[str] = None
    scheduled_time: Optional[time] = None
    last_taken: Optional[datetime] = None

    @field_validator("name", "dosage", "frequency", mode="before")
    def _required_text(cls, v: object) -> str:
        text = str(v).strip() if v is not None else ""
        if not text:
            raise ValueError("must not be blank")
        return text

    @field_validator("instructions", mode="before")
    def _optional_text(cls, v: str | None) -> str | None:
        return _strip_optional(v)

    @field_validator("scheduled_time", mode="before")
    def _parse_scheduled(cls, v: time | str | None) -> time | None:
        return parse_time_of_day(v)

    @field_validator("last_taken", mode="before")
    def _parse_last_taken(cls, v: datetime | str | None) -> datetime | None:
        return _parse_instant(v)

    @field_serializer("scheduled_time")
    def _dump_scheduled(self, v: time | None) -> str | None:
        return v.strftime("%H:%M") if v else None

    @property
    def added_at(self) -> datetime:
        """Creation instant, recovered from the millisecond id."""
        return datetime.fromtimestamp(self.id / 1000, tz=timezone.utc)


class SymptomEntry(BaseModel):
    """Record of a symptom the patient logged."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    severity: Severity = Severity.mild
    notes: Optional[str] = None
    time: datetime

    @field_validator("name", mode="before")
    def _required_name(cls, v: object) -> str:
        text = str(v).strip() if v is not None else ""
        if not text:
            raise ValueError("must not be blank")
        return text

    @field_validator("notes", mode="before")
    def _trim_notes(cls, v: str | None) -> str | None:
        return _strip_optional(v)

    @field_validator("time", mode="before")
    def _parse_time(cls, v: datetime | str) -> datetime:
        parsed = _parse_instant(v)
        if parsed is None:
            raise ValueError("time is required")
        return parsed


class ActivityItem(BaseModel):
    """One line of the merged activity feed."""

    model_config = ConfigDict(frozen=True)

    kind: ActivityKind
    time: datetime
    text: str
    source_id: int


class DoseStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    medication_id: int
    urgency: Urgency
    label: str
    scheduled_at: Optional[datetime] = None
    minutes_until: Optional[int] = None
    taken_today: bool = False


class PendingDeletion(BaseModel):
    """A symptom entry that was deleted but can still be restored."""

    model_config = ConfigDict(frozen=True)

    entry: SymptomEntry
    deleted_at: datetime
    expires_at: datetime
