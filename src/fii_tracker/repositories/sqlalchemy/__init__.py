"""SQLAlchemy repository implementations."""

from fii_tracker.repositories.sqlalchemy.database import (
    Base,
    get_engine,
    get_session,
    init_db,
    init_db_with_path,
    reset_database,
)
from fii_tracker.repositories.sqlalchemy.kv_store import SqlAlchemyKeyValueStore

__all__ = [
    "Base",
    "get_engine",
    "get_session",
    "init_db",
    "init_db_with_path",
    "reset_database",
    "SqlAlchemyKeyValueStore",
]
