import sys
from datetime import datetime, time, timezone
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from zoneinfo import ZoneInfo

from adherence import AdherenceStore, Severity
from adherence.config import EngineSettings, get_settings
from db.repository import SqlitePersistence


def test_empty_database_loads_empty_collections(tmp_path):
    persistence = SqlitePersistence(tmp_path / "health.db")
    assert persistence.load() == ([], [])


def test_repo_roundtrip_through_store(tmp_path, clock, scheduler):
    persistence = SqlitePersistence(tmp_path / "health.db")
    store = AdherenceStore.from_persistence(persistence, clock=clock, scheduler=scheduler)
    metformin = store.add_medication("Metformin", "500mg", "twice daily", scheduled_time="08:00")
    store.add_medication("Aspirin", "81mg", "daily", instructions="with food")
    clock.advance(minutes=2)
    store.mark_taken(metformin.id)
    first = store.log_symptom("Headache", "intense", notes="before breakfast")
    store.log_symptom("Cough")

    meds, syms = SqlitePersistence(tmp_path / "health.db").load()

    # list order survives the round trip
    assert [m.name for m in meds] == ["Aspirin", "Metformin"]
    assert [s.name for s in syms] == ["Cough", "Headache"]
    assert meds[1].scheduled_time == time(8, 0)
    assert meds[1].last_taken == clock.now()
    assert meds[1].last_taken.tzinfo is not None
    assert meds[0].instructions == "with food"
    # severity synonym mapping
    assert syms[1].severity is Severity.severe
    assert syms[1] == first


def test_save_replaces_snapshot(tmp_path, clock, scheduler):
    persistence = SqlitePersistence(tmp_path / "health.db")
    store = AdherenceStore.from_persistence(persistence, clock=clock, scheduler=scheduler)
    entry = store.log_symptom("Nausea")
    store.delete_symptom(entry.id)
    assert persistence.load() == ([], [])
    store.undo()
    assert persistence.load()[1] == [entry]


def test_non_utc_times_are_stored_as_instants(tmp_path, clock, scheduler):
    clock.current = datetime(2025, 7, 1, 8, 0, tzinfo=ZoneInfo("America/New_York"))
    persistence = SqlitePersistence(tmp_path / "health.db")
    store = AdherenceStore(clock=clock, scheduler=scheduler, persistence=persistence)
    entry = store.log_symptom("Dizziness")
    loaded = persistence.load()[1][0]
    assert loaded.time == entry.time
    assert loaded.time.astimezone(timezone.utc).hour == 12


def test_db_path_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("HEALTH_DB_PATH", str(tmp_path / "env.db"))
    get_settings.cache_clear()
    try:
        persistence = SqlitePersistence()
    finally:
        get_settings.cache_clear()
    assert persistence.path == (tmp_path / "env.db").resolve()
    assert persistence.path.exists()


def test_db_path_from_settings(tmp_path):
    settings = EngineSettings(db_path=str(tmp_path / "configured.db"))
    persistence = SqlitePersistence(settings=settings)
    assert persistence.path == (tmp_path / "configured.db").resolve()
    # an explicit path still wins
    assert SqlitePersistence(tmp_path / "explicit.db", settings=settings).path.name == "explicit.db"
