from .engine import Base, get_engine, init_db  # noqa: F401
from .repository import SqlitePersistence  # noqa: F401

__all__ = [
    "Base",
    "SqlitePersistence",
    "get_engine",
    "init_db",
]
