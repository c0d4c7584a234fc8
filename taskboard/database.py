# taskboard/database.py
"""SQLite engine, session factory and additive schema migration using SQLModel."""

import logging
from enum import Enum

from sqlalchemy import Column, inspect, text
from sqlalchemy.dialects.sqlite import dialect as sqlite_dialect
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from taskboard.config import DATABASE_URL

logger = logging.getLogger(__name__)

engine = create_engine(DATABASE_URL, echo=False, connect_args={"check_same_thread": False})


def _column_ddl_type(column: Column) -> str:
    return column.type.compile(dialect=sqlite_dialect())


def _not_null_default(column: Column) -> str:
    """DEFAULT clause SQLite needs to add a NOT NULL column to a populated table."""
    default = column.default.arg if column.default is not None and column.default.is_scalar else None
    if isinstance(default, Enum):
        default = default.value
    if isinstance(default, bool):
        return f" DEFAULT {int(default)}"
    if isinstance(default, (int, float)):
        return f" DEFAULT {default}"
    if default is not None:
        escaped = str(default).replace("'", "''")
        return f" DEFAULT '{escaped}'"

    type_str = _column_ddl_type(column).upper()
    if "BOOL" in type_str or "INT" in type_str:
        return " DEFAULT 0"
    if "DATE" in type_str or "TIME" in type_str:
        return " DEFAULT '1970-01-01 00:00:00'"
    if "JSON" in type_str:
        return " DEFAULT '[]'"
    return " DEFAULT ''"


def add_missing_columns(bind: Engine) -> list[str]:
    """Add model columns the live tables lack. Returns the executed statements.

    Only additive changes are applied; dropped or retyped columns are logged
    and left alone so household data is never discarded.
    """
    inspector = inspect(bind)
    existing_tables = set(inspector.get_table_names())
    statements = []

    for table_name, table in SQLModel.metadata.tables.items():
        if table_name not in existing_tables:
            continue
        db_columns = {col["name"] for col in inspector.get_columns(table_name)}
        model_columns = {col.name: col for col in table.columns}

        stale = db_columns - set(model_columns)
        if stale:
            logger.warning("Table '%s' has columns no longer in the model: %s", table_name, stale)

        for col_name in sorted(set(model_columns) - db_columns):
            col = model_columns[col_name]
            nullable = "" if col.nullable else " NOT NULL"
            default = "" if col.nullable else _not_null_default(col)
            statements.append(
                f'ALTER TABLE "{table_name}" '
                f'ADD COLUMN "{col_name}" {_column_ddl_type(col)}{nullable}{default}'
            )

    if statements:
        with bind.begin() as conn:
            for stmt in statements:
                logger.info("Migrating: %s", stmt)
                conn.execute(text(stmt))
    return statements


def create_db_and_tables(bind: Engine = engine) -> None:
    """Create all tables from SQLModel metadata, then add any new columns."""
    SQLModel.metadata.create_all(bind)
    add_missing_columns(bind)


def get_session():
    """Yield a database session for FastAPI dependency injection."""
    with Session(engine) as session:
        yield session
