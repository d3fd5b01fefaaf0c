"""
Snapshot persistence for :class:`adherence.store.AdherenceStore`.

The store hands over its full collections after every change; ``save`` replaces
what is on disk in a single transaction so a failed write leaves the previous
snapshot intact.
"""
import logging
from contextlib import contextmanager
from datetime import timezone
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from adherence.config import EngineSettings, get_settings
from adherence.schema import Medication, SymptomEntry
from db.engine import get_engine, init_db, resolve_db_path
from db.models import MedicationORM, SymptomEntryORM

logger = logging.getLogger(__name__)


def _utc(dt):
    return dt.astimezone(timezone.utc) if dt is not None else None


class SqlitePersistence:
    """Persistence collaborator backed by a SQLite file."""

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        settings: Optional[EngineSettings] = None,
    ):
        if path is None:
            path = (settings or get_settings()).db_path
        self.path = resolve_db_path(path)
        self._engine = init_db(get_engine(self.path))
        self._SessionLocal = sessionmaker(bind=self._engine, expire_on_commit=False)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Provide a transactional session.

        Commits on successful exit, rolls back and re-raises on exception, and
        always closes the session.
        """
        db = self._SessionLocal()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ---------- collaborator protocol ------------------------------------

    def load(self) -> Tuple[List[Medication], List[SymptomEntry]]:
        """Return the saved collections in list order (empty when nothing was saved)."""
        with self.session_scope() as db:
            med_rows = db.scalars(select(MedicationORM).order_by(MedicationORM.position)).all()
            sym_rows = db.scalars(select(SymptomEntryORM).order_by(SymptomEntryORM.position)).all()
            medications = [Medication.model_validate(row, from_attributes=True) for row in med_rows]
            symptoms = [SymptomEntry.model_validate(row, from_attributes=True) for row in sym_rows]
        return medications, symptoms

    def save(self, medications: Sequence[Medication], symptoms: Sequence[SymptomEntry]) -> None:
        """Replace the stored snapshot with ``medications`` and ``symptoms``."""
        with self.session_scope() as db:
            db.execute(delete(MedicationORM))
            db.execute(delete(SymptomEntryORM))
            db.add_all(
                MedicationORM(
                    id=med.id,
                    position=pos,
                    name=med.name,
                    dosage=med.dosage,
                    frequency=med.frequency,
                    instructions=med.instructions,
                    scheduled_time=med.scheduled_time,
                    last_taken=_utc(med.last_taken),
                )
                for pos, med in enumerate(medications)
            )
            db.add_all(
                SymptomEntryORM(
                    id=entry.id,
                    position=pos,
                    name=entry.name,
                    severity=entry.severity,
                    notes=entry.notes,
                    time=_utc(entry.time),
                )
                for pos, entry in enumerate(symptoms)
            )
        logger.debug(
            "Saved %d medication(s) and %d symptom(s) to %s",
            len(medications),
            len(symptoms),
            self.path,
        )
