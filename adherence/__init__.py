"""Medication adherence and activity engine."""

from .errors import AdherenceError, NotFoundError, ValidationError  # noqa: F401
from .schema import (  # noqa: F401
    SYMPTOM_SUGGESTIONS,
    ActivityItem,
    ActivityKind,
    DoseStatus,
    Medication,
    PendingDeletion,
    Severity,
    SymptomEntry,
    Urgency,
)
from .store import AdherenceStore  # noqa: F401

__all__ = [
    "AdherenceError",
    "AdherenceStore",
    "ActivityItem",
    "ActivityKind",
    "DoseStatus",
    "Medication",
    "NotFoundError",
    "PendingDeletion",
    "SYMPTOM_SUGGESTIONS",
    "Severity",
    "SymptomEntry",
    "Urgency",
    "ValidationError",
]
