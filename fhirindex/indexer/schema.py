"""Database schema definitions - Single Source of Truth."""

import sqlite3

from .schemas.index_schema import INDEX_TABLES
from .schemas.utils import TableSchema

TABLES: dict[str, TableSchema] = {
    **INDEX_TABLES,
}


assert len(TABLES) == 3, f"Schema contract violation: Expected 3 tables, got {len(TABLES)}"


FHIRPATH_INDEX = TABLES["fhirpath_index"]
EXPRESSIONS = TABLES["expressions"]
VIEWS = TABLES["views"]


def get_table_schema(table_name: str) -> TableSchema:
    """Get schema for a specific table."""
    if table_name not in TABLES:
        raise ValueError(f"Unknown table: {table_name}")
    return TABLES[table_name]


def validate_all_tables(cursor: sqlite3.Cursor) -> dict[str, list[str]]:
    """Validate all table schemas against actual database."""
    mismatches = {}
    for table_name, schema in TABLES.items():
        is_valid, errors = schema.validate_against_db(cursor)
        if not is_valid:
            mismatches[table_name] = errors
    return mismatches
