"""Database operations for the indexer.

ARCHITECTURE: Schema-Driven Database Layer
- schema.py is the Single Source of Truth for all table definitions
- This module consumes the TABLES registry to generate SQL dynamically
- NO hardcoded CREATE TABLE or INSERT statements

The index artifact is generated fresh every build. There is no migration,
merge or upsert mode: an existing file at the target path is destroyed.

- BaseDatabaseManager: connection, transactions, schema, batching
- IndexDatabaseMixin: add_* methods for fhirpath_index, expressions, views
"""

from pathlib import Path

from fhirindex.utils.logging import logger

from ..config import DEFAULT_BATCH_SIZE
from .base_database import BaseDatabaseManager
from .index_database import IndexDatabaseMixin, to_json


class DatabaseManager(BaseDatabaseManager, IndexDatabaseMixin):
    """Complete database manager for one index artifact."""


def remove_database_files(db_path: str | Path) -> None:
    """Delete a database file and its journal siblings if present."""
    base = Path(db_path)
    for candidate in (base, Path(f"{base}-wal"), Path(f"{base}-shm"), Path(f"{base}-journal")):
        if candidate.exists():
            candidate.unlink()


def initialize_database(db_path: str | Path, batch_size: int = DEFAULT_BATCH_SIZE) -> DatabaseManager:
    """Destroy any artifact at db_path and return a manager on a fresh schema."""
    path = Path(db_path)
    if path.exists():
        logger.debug(f"Removing existing database at {path}")
    remove_database_files(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    manager = DatabaseManager(str(path), batch_size)
    manager.create_schema()
    return manager


__all__ = [
    "BaseDatabaseManager",
    "DatabaseManager",
    "IndexDatabaseMixin",
    "initialize_database",
    "remove_database_files",
    "to_json",
]
