"""SQLAlchemy engine utilities."""

from pathlib import Path
from typing import Optional, Union

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


def resolve_db_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Explicit ``path``, else ``health.db`` in the cwd."""

    if path is None:
        path = Path.cwd() / "health.db"
    return Path(path).expanduser().resolve()


def get_engine(path: Optional[Union[str, Path]] = None) -> Engine:
    """Return an engine bound to the resolved SQLite file."""

    url = f"sqlite:///{resolve_db_path(path)}"
    return create_engine(
        url,
        connect_args={"check_same_thread": False},
        echo=False,
    )


_initialized_paths: set[Path] = set()


def init_db(engine: Engine) -> Engine:
    """Initialize database tables if they haven't been created."""

    db_path = Path(engine.url.database or "")
    if db_path not in _initialized_paths:
        from db import models  # noqa: F401 – side-effect import

        Base.metadata.create_all(engine)
        _initialized_paths.add(db_path)

    return engine
