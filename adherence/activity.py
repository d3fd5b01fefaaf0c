from __future__ import annotations

from typing import Iterable, List

from adherence.schema import ActivityItem, ActivityKind, Medication, SymptomEntry

DEFAULT_LIMIT = 8


def merge(
    medications: Iterable[Medication],
    symptoms: Iterable[SymptomEntry],
    limit: int = DEFAULT_LIMIT,
) -> List[ActivityItem]:
    """Merge taken doses and logged symptoms into one feed, newest first.

    Medications that were never taken are skipped. The sort is stable, so on
    equal timestamps medications come before symptoms and input order is kept.
    Returns a new list on every call.
    """
    if limit <= 0:
        return []

    items: List[ActivityItem] = [
        ActivityItem(
            kind=ActivityKind.medication_taken,
            time=m.last_taken,
            text=f"Took {m.name}",
            source_id=m.id,
        )
        for m in medications
        if m.last_taken is not None
    ]
    items.extend(
        ActivityItem(
            kind=ActivityKind.symptom_logged,
            time=s.time,
            text=f"Logged {s.name}",
            source_id=s.id,
        )
        for s in symptoms
    )
    # sorted() stays stable with reverse=True
    items.sort(key=lambda item: item.time, reverse=True)
    return items[:limit]
