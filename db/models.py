"""
SQLAlchemy ↔️ Pydantic mapping for medications and symptom entries.

``position`` keeps the in-memory list order (newest first) across restarts.
"""
from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
    Time,
)

from adherence.schema import Severity
from db.engine import Base


class MedicationORM(Base):
    __tablename__ = "medications"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    position = Column(Integer, nullable=False, index=True)
    name = Column(String, nullable=False)
    dosage = Column(String, nullable=False)
    frequency = Column(String, nullable=False)
    instructions = Column(Text)
    scheduled_time = Column(Time)
    last_taken = Column(DateTime(timezone=True))


class SymptomEntryORM(Base):
    __tablename__ = "symptom_entries"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    position = Column(Integer, nullable=False, index=True)
    name = Column(String, nullable=False)
    severity = Column(Enum(Severity), nullable=False)
    notes = Column(Text)
    time = Column(DateTime(timezone=True), nullable=False)
