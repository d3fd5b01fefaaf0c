"""
Orchestrator owning the medication and symptom collections.

Every mutation validates first and only then swaps in the new state, so a
failed call leaves nothing half-applied. After a change the full snapshot is
handed to the persistence collaborator (if any).
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, time
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from adherence import dose_clock
from adherence.activity import merge
from adherence.clock import Clock, IdGenerator, Scheduler, SystemClock
from adherence.config import EngineSettings, get_settings
from adherence.errors import NotFoundError, ValidationError
from adherence.schema import (
    ActivityItem,
    DoseStatus,
    Medication,
    PendingDeletion,
    Severity,
    SymptomEntry,
    to_aware,
)
from adherence.undo import UndoableDeletionRegistry

logger = logging.getLogger(__name__)


class Persistence(Protocol):
    def load(self) -> Tuple[List[Medication], List[SymptomEntry]]:
        ...

    def save(self, medications: Sequence[Medication], symptoms: Sequence[SymptomEntry]) -> None:
        ...


def _require(field: str, value: Optional[str]) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(f"{field} is required")
    return text


class AdherenceStore:
    def __init__(
        self,
        medications: Iterable[Medication] = (),
        symptoms: Iterable[SymptomEntry] = (),
        clock: Optional[Clock] = None,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[EngineSettings] = None,
        persistence: Optional[Persistence] = None,
        registry: Optional[UndoableDeletionRegistry] = None,
    ):
        self.settings = settings or get_settings()
        self._clock = clock or SystemClock()
        self._persistence = persistence
        self._registry = registry or UndoableDeletionRegistry(
            grace_period=self.settings.undo_grace, clock=self._clock, scheduler=scheduler
        )
        self._lock = threading.RLock()
        self._medications: List[Medication] = list(medications)
        self._symptoms: List[SymptomEntry] = list(symptoms)
        self._ids = IdGenerator(self._clock)
        for item in (*self._medications, *self._symptoms):
            self._ids.observe(item.id)

    @classmethod
    def from_persistence(cls, persistence: Persistence, **kwargs) -> "AdherenceStore":
        """Build a store seeded with whatever ``persistence`` saved last time."""
        medications, symptoms = persistence.load()
        logger.info(
            "Loaded %d medication(s) and %d symptom(s)", len(medications), len(symptoms)
        )
        return cls(medications, symptoms, persistence=persistence, **kwargs)

    # ---------- read views -----------------------------------------------

    @property
    def medications(self) -> Tuple[Medication, ...]:
        return tuple(self._medications)

    @property
    def symptoms(self) -> Tuple[SymptomEntry, ...]:
        return tuple(self._symptoms)

    @property
    def pending_deletion(self) -> Optional[PendingDeletion]:
        return self._registry.pending

    def get_medication(self, medication_id: int) -> Medication:
        for med in self._medications:
            if med.id == medication_id:
                return med
        raise NotFoundError("medication", medication_id)

    def get_symptom(self, symptom_id: int) -> SymptomEntry:
        for entry in self._symptoms:
            if entry.id == symptom_id:
                return entry
        raise NotFoundError("symptom", symptom_id)

    def recent_activity(self, limit: Optional[int] = None) -> List[ActivityItem]:
        if limit is None:
            limit = self.settings.activity_limit
        return merge(self._medications, self._symptoms, limit)

    def dose_status(self, medication_id: int, now: Optional[datetime] = None) -> DoseStatus:
        med = self.get_medication(medication_id)
        return dose_clock.dose_status(
            med, now or self._clock.now(), self.settings.near_threshold
        )

    def dose_statuses(self, now: Optional[datetime] = None) -> List[DoseStatus]:
        """Status of every medication, in list order. Meant to be called on each tick."""
        now = now or self._clock.now()
        return [
            dose_clock.dose_status(med, now, self.settings.near_threshold)
            for med in self._medications
        ]

    # ---------- medications ----------------------------------------------

    def add_medication(
        self,
        name: str,
        dosage: str,
        frequency: str,
        scheduled_time: Union[time, str, None] = None,
        instructions: Optional[str] = None,
    ) -> Medication:
        name = _require("name", name)
        dosage = _require("dosage", dosage)
        frequency = _require("frequency", frequency)
        with self._lock:
            try:
                med = Medication(
                    id=self._ids.next_id(),
                    name=name,
                    dosage=dosage,
                    frequency=frequency,
                    scheduled_time=scheduled_time,
                    instructions=instructions,
                    last_taken=None,
                )
            except PydanticValidationError as exc:
                raise ValidationError(f"Invalid medication: {exc}") from exc
            self._medications.insert(0, med)
            logger.info("Added medication %s (%s)", med.id, med.name)
            self._persist()
        return med

    def remove_medication(self, medication_id: int) -> bool:
        with self._lock:
            remaining = [m for m in self._medications if m.id != medication_id]
            if len(remaining) == len(self._medications):
                return False
            self._medications = remaining
            logger.info("Removed medication %s", medication_id)
            self._persist()
        return True

    def mark_taken(self, medication_id: int) -> Medication:
        with self._lock:
            current = self.get_medication(medication_id)
            updated = current.model_copy(update={"last_taken": to_aware(self._clock.now())})
            self._medications = [
                updated if m.id == medication_id else m for m in self._medications
            ]
            logger.info("Medication %s marked taken at %s", medication_id, updated.last_taken)
            self._persist()
        return updated

    # ---------- symptoms -------------------------------------------------

    def log_symptom(
        self,
        name: str,
        severity: Union[Severity, str] = Severity.mild,
        notes: Optional[str] = None,
    ) -> SymptomEntry:
        name = _require("name", name)
        try:
            severity = Severity(severity)
        except ValueError as exc:
            raise ValidationError(f"Unknown severity: {severity!r}") from exc
        with self._lock:
            try:
                entry = SymptomEntry(
                    id=self._ids.next_id(),
                    name=name,
                    severity=severity,
                    notes=notes,
                    time=self._clock.now(),
                )
            except PydanticValidationError as exc:
                raise ValidationError(f"Invalid symptom entry: {exc}") from exc
            self._symptoms.insert(0, entry)
            logger.info("Logged symptom %s (%s, %s)", entry.id, entry.name, entry.severity.value)
            self._persist()
        return entry

    def delete_symptom(self, symptom_id: int) -> PendingDeletion:
        """Remove a symptom from the list; it stays recoverable via :meth:`undo`."""
        with self._lock:
            entry = self.get_symptom(symptom_id)
            self._symptoms = [s for s in self._symptoms if s.id != symptom_id]
            pending = self._registry.delete(entry)
            self._persist()
        return pending

    def undo(self) -> Optional[SymptomEntry]:
        """Restore the most recent deletion at the head of the list, if still possible."""
        with self._lock:
            entry = self._registry.undo()
            if entry is None:
                return None
            self._symptoms.insert(0, entry)
            self._persist()
        return entry

    def dismiss(self) -> Optional[SymptomEntry]:
        return self._registry.dismiss()

    def clear(self) -> None:
        """Drop every medication and symptom, including a pending deletion."""
        with self._lock:
            self._registry.dismiss()
            self._medications = []
            self._symptoms = []
            logger.info("Cleared all medications and symptoms")
            self._persist()

    # ---------- persistence ----------------------------------------------

    def _persist(self) -> None:
        if self._persistence is None:
            return
        try:
            self._persistence.save(tuple(self._medications), tuple(self._symptoms))
        except Exception:
            # in-memory state stays authoritative
            logger.exception("Failed to persist adherence state")
