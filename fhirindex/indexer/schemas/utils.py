"""Schema utility classes - Foundation for all schema definitions."""

import sqlite3
from dataclasses import dataclass, field


@dataclass
class Column:
    """Represents a database column with type and constraints."""

    name: str
    type: str
    nullable: bool = True
    default: str | None = None
    primary_key: bool = False

    def to_sql(self) -> str:
        """Generate SQL column definition."""
        parts = [self.name, self.type]
        if not self.nullable:
            parts.append("NOT NULL")
        if self.default is not None:
            parts.append(f"DEFAULT {self.default}")
        if self.primary_key:
            parts.append("PRIMARY KEY")
        return " ".join(parts)


@dataclass
class TableSchema:
    """Represents a complete table schema.

    ``indexes`` are created together with the table. ``deferred_indexes`` are
    created only after bulk load, so the insert-heavy phase does not pay for them.
    """

    name: str
    columns: list[Column]
    indexes: list[tuple[str, list[str]]] = field(default_factory=list)
    deferred_indexes: list[tuple[str, list[str]]] = field(default_factory=list)

    def column_names(self) -> list[str]:
        """Get list of column names in definition order."""
        return [col.name for col in self.columns]

    def create_table_sql(self) -> str:
        """Generate CREATE TABLE statement."""
        col_defs = [col.to_sql() for col in self.columns]
        return f"CREATE TABLE IF NOT EXISTS {self.name} (\n    " + ",\n    ".join(col_defs) + "\n)"

    def _index_sql(self, index_defs: list[tuple[str, list[str]]]) -> list[str]:
        stmts = []
        for idx_name, idx_cols in index_defs:
            cols_str = ", ".join(idx_cols)
            stmts.append(f"CREATE INDEX IF NOT EXISTS {idx_name} ON {self.name} ({cols_str})")
        return stmts

    def create_indexes_sql(self) -> list[str]:
        """Generate CREATE INDEX statements for load-time indexes."""
        return self._index_sql(self.indexes)

    def create_deferred_indexes_sql(self) -> list[str]:
        """Generate CREATE INDEX statements for post-load indexes."""
        return self._index_sql(self.deferred_indexes)

    def insert_sql(self) -> str:
        """Generate a parameterized INSERT covering every column."""
        columns = self.column_names()
        placeholders = ", ".join("?" for _ in columns)
        return f"INSERT INTO {self.name} ({', '.join(columns)}) VALUES ({placeholders})"

    def validate_against_db(self, cursor: sqlite3.Cursor) -> tuple[bool, list[str]]:
        """Validate that actual database table matches this schema."""
        errors = []

        cursor.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (self.name,))
        if not cursor.fetchone():
            errors.append(f"Table {self.name} does not exist")
            return False, errors

        cursor.execute(f"PRAGMA table_info({self.name})")
        actual_cols = {row[1]: row[2] for row in cursor.fetchall()}

        for col in self.columns:
            if col.name not in actual_cols:
                errors.append(f"Column {self.name}.{col.name} missing in database")
            elif actual_cols[col.name].upper() != col.type.upper():
                errors.append(
                    f"Column {self.name}.{col.name} type mismatch: "
                    f"expected {col.type}, got {actual_cols[col.name]}"
                )

        cursor.execute(f"PRAGMA index_list({self.name})")
        actual_indexes = {row[1] for row in cursor.fetchall()}
        for idx_name, _cols in self.indexes:
            if idx_name not in actual_indexes:
                errors.append(f"Index {idx_name} missing on {self.name}")

        return len(errors) == 0, errors
