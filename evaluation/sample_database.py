"""
Sample database for the optional execution check.

Creates every reference table in an in-memory SQLite database and seeds it
with the embedded sample rows, so relational snippets (and exercise
solutions in particular) can be run for real.

Usage:
    with SampleDatabase(registry) as db:
        db.executor.execute("SELECT COUNT(*) FROM customers")
"""

import sqlite3
from typing import Dict, List, Optional, Sequence

import sqlglot
from sqlglot import exp

from harness.logging import get_logger
from reference.classic_models import SAMPLE_ROWS
from reference.schema_registry import SchemaRegistry, SchemaTable

from .sql_executor import DBAPIStatementExecutor


log = get_logger("evaluation")


def sqlite_type(declared: str, dialect: str = "mysql") -> str:
    """Translate a declared column type to SQLite; "" when unknown."""
    if not declared:
        return ""
    try:
        return exp.DataType.build(declared, dialect=dialect).sql(dialect="sqlite")
    except (sqlglot.errors.SqlglotError, ValueError):
        return ""


def create_table_sql(table: SchemaTable, dialect: str = "mysql") -> str:
    """SQLite CREATE TABLE for a reference table (foreign keys are not enforced)."""
    definitions = []
    for name, declared in table.columns:
        definitions.append(f'"{name}" {sqlite_type(declared, dialect)}'.rstrip())
    key_columns = [name for name in table.column_names if name in table.primary_key]
    if key_columns:
        definitions.append("PRIMARY KEY (" + ", ".join(f'"{c}"' for c in key_columns) + ")")
    return f'CREATE TABLE "{table.name}" (\n    ' + ",\n    ".join(definitions) + "\n)"


def setup_sample_database(
    connection: sqlite3.Connection,
    registry: SchemaRegistry,
    rows: Optional[Dict[str, List[Sequence]]] = None,
    dialect: str = "mysql",
) -> int:
    """
    Setup the reference schema with sample data.

    Args:
        connection: Open SQLite connection
        registry: Reference registry whose tables are created
        rows: Table name -> rows in declared column order (embedded sample rows by default)
        dialect: Dialect of the declared column types

    Returns:
        Number of rows inserted
    """
    rows = SAMPLE_ROWS if rows is None else rows
    lowered = {name.lower(): table_rows for name, table_rows in rows.items()}
    inserted = 0

    for table in registry.tables.values():
        if not table.columns:
            continue
        connection.execute(create_table_sql(table, dialect))

        table_rows = lowered.get(table.name.lower(), [])
        width = len(table.columns)
        usable = [row for row in table_rows if len(row) == width]
        if len(usable) < len(table_rows):
            log.debug("sample_rows_skipped", table=table.name, skipped=len(table_rows) - len(usable))
        if usable:
            placeholders = ", ".join("?" for _ in range(width))
            connection.executemany(f'INSERT INTO "{table.name}" VALUES ({placeholders})', usable)
            inserted += len(usable)

    connection.commit()
    return inserted


class SampleDatabase:
    """An in-memory sample database, one per document."""

    def __init__(self, registry: SchemaRegistry, dialect: str = "mysql"):
        self.connection = sqlite3.connect(":memory:")
        self.executor = DBAPIStatementExecutor(self.connection)
        self.rows_loaded = setup_sample_database(self.connection, registry, dialect=dialect)

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> "SampleDatabase":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
