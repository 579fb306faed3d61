"""Base database manager with core infrastructure."""

import sqlite3
from collections import defaultdict

from fhirindex.utils.logging import logger

from ..config import DEFAULT_BATCH_SIZE, MAX_BATCH_SIZE
from ..exceptions import SinkError
from ..schema import TABLES, get_table_schema


def validate_table_name(table: str) -> str:
    """Validate table name against schema to prevent SQL injection."""
    if table not in TABLES:
        raise ValueError(f"Invalid table name: {table}. Must be one of the schema-defined tables.")
    return table


class BaseDatabaseManager:
    """Base database manager providing core infrastructure.

    Owns the single SQLite connection for one build. Rows are buffered per
    table in ``generic_batches`` and written with one ``executemany`` per flush.
    """

    def __init__(self, db_path: str, batch_size: int = DEFAULT_BATCH_SIZE):
        """Initialize the database manager."""
        self.db_path = db_path

        try:
            self.conn = sqlite3.connect(db_path, timeout=60)
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.execute("PRAGMA synchronous=NORMAL")
        except sqlite3.Error as e:
            raise SinkError(f"Failed to open database {db_path}: {e}") from e

        if batch_size <= 0:
            self.batch_size = DEFAULT_BATCH_SIZE
        elif batch_size > MAX_BATCH_SIZE:
            self.batch_size = MAX_BATCH_SIZE
        else:
            self.batch_size = batch_size

        self.generic_batches: dict[str, list[tuple]] = defaultdict(list)

    def begin_transaction(self) -> None:
        """Start a new transaction."""
        self.conn.execute("BEGIN IMMEDIATE")

    def commit(self) -> None:
        """Commit the current transaction."""
        try:
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise SinkError(f"Failed to commit database changes: {e}") from e

    def rollback(self) -> None:
        """Rollback the current transaction."""
        self.conn.rollback()

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()

    def validate_schema(self) -> bool:
        """Validate database schema matches expected definitions."""
        from ..schema import validate_all_tables

        cursor = self.conn.cursor()
        mismatches = validate_all_tables(cursor)

        if not mismatches:
            logger.debug("All table schemas validated successfully")
            return True

        logger.warning("Schema validation warnings detected:")
        for table_name, errors in mismatches.items():
            logger.warning(f"  Table: {table_name}")
            for error in errors:
                logger.warning(f"    - {error}")
        return False

    def create_schema(self) -> None:
        """Create all tables and load-time indexes from the schema registry."""
        cursor = self.conn.cursor()
        try:
            for _table_name, table_schema in TABLES.items():
                cursor.execute(table_schema.create_table_sql())

                for create_index_sql in table_schema.create_indexes_sql():
                    cursor.execute(create_index_sql)

            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise SinkError(f"Failed to create schema: {e}") from e

    def create_deferred_indexes(self) -> list[str]:
        """Create post-load indexes for every table. Returns the index names."""
        created = []
        cursor = self.conn.cursor()
        try:
            for table_schema in TABLES.values():
                for idx_name, _cols in table_schema.deferred_indexes:
                    created.append(idx_name)
                for create_index_sql in table_schema.create_deferred_indexes_sql():
                    cursor.execute(create_index_sql)
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise SinkError(f"Failed to create post-load indexes: {e}") from e
        return created

    def pending_count(self, table_name: str) -> int:
        """Number of rows buffered for a table and not yet flushed."""
        return len(self.generic_batches.get(table_name, []))

    def flush_generic_batch(self, table_name: str) -> int:
        """Flush a single table's batch using schema-driven INSERT.

        Must run inside an open transaction; the caller commits.
        """
        batch = self.generic_batches.get(table_name, [])
        if not batch:
            return 0

        schema = get_table_schema(table_name)
        columns = schema.column_names()

        if len(batch[0]) != len(columns):
            raise RuntimeError(
                f"Column mismatch for table '{table_name}': "
                f"add_* method provides {len(batch[0])} values but schema has {len(columns)} columns."
            )

        cursor = self.conn.cursor()
        try:
            cursor.executemany(schema.insert_sql(), batch)
        except sqlite3.Error as e:
            logger.error(
                f"Insert into '{table_name}' failed for batch of {len(batch)} rows: {e}"
            )
            raise SinkError(f"Failed to write {table_name} batch: {e}") from e

        written = len(batch)
        self.generic_batches[table_name] = []
        return written

    def flush_batch(self, table_name: str | None = None) -> int:
        """Flush pending batches inside one explicit transaction.

        With ``table_name`` only that table is flushed. Any failure rolls the
        whole transaction back and raises SinkError.
        """
        names = [validate_table_name(table_name)] if table_name else list(TABLES)
        if not any(self.generic_batches.get(name) for name in names):
            return 0

        try:
            self.begin_transaction()
        except sqlite3.Error as e:
            raise SinkError(f"Failed to begin transaction: {e}") from e

        written = 0
        try:
            for name in names:
                written += self.flush_generic_batch(name)
        except Exception:
            self.rollback()
            raise

        self.commit()
        return written

    def table_count(self, table_name: str) -> int:
        """Row count for a schema table."""
        validated = validate_table_name(table_name)
        cursor = self.conn.cursor()
        cursor.execute(f"SELECT COUNT(*) FROM {validated}")
        return cursor.fetchone()[0]

    def finalize(self) -> None:
        """Fold the WAL back into the main file so the artifact is one file."""
        try:
            self.conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
            self.conn.execute("PRAGMA journal_mode=DELETE")
        except sqlite3.Error as e:
            raise SinkError(f"Failed to finalize database {self.db_path}: {e}") from e
