"""Tiny home-grown migration helpers for SQLite databases."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger("duka.migrate")

# Simple, idempotent migrations for SQLite.
# We only ADD columns/indexes. ``Base.metadata.create_all`` builds fresh schemas.

ITEM_COLUMNS: dict[str, str] = {
    "bales_count": "INTEGER DEFAULT 0 NOT NULL",
    "units_per_bale": "INTEGER DEFAULT 0 NOT NULL",
    "total_units": "INTEGER DEFAULT 0 NOT NULL",
    "bale_price": "REAL DEFAULT 0 NOT NULL",
    "unit_price": "REAL DEFAULT 0 NOT NULL",
    "landing_price": "REAL DEFAULT 0 NOT NULL",
    "selling_price": "REAL DEFAULT 0 NOT NULL",
    "health_status": "TEXT DEFAULT 'unknown' NOT NULL",
    "health_color": "TEXT DEFAULT 'gray' NOT NULL",
    "created_at": "TEXT DEFAULT '' NOT NULL",
    "updated_at": "TEXT DEFAULT '' NOT NULL",
}


def _table_columns(engine: Engine, table: str) -> list[dict[str, object]]:
    """Fetch SQLite's description of a table so we know what columns exist."""

    with engine.connect() as conn:
        return conn.execute(text(f"PRAGMA table_info({table})")).mappings().all()


def _column_names(engine: Engine, table: str) -> set[str]:
    return {record["name"] for record in _table_columns(engine, table)}


def _add_column_sqlite(engine: Engine, table: str, col_def: str) -> None:
    """ALTER TABLE ADD COLUMN helper."""
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))


def _create_index_if_not_exists(engine: Engine, table: str, name: str, cols: Iterable[str], unique: bool = False) -> None:
    """Build an index only if it hasn't already been defined."""

    cols_sql = ", ".join(cols)
    unique_sql = "UNIQUE " if unique else ""
    with engine.begin() as conn:
        conn.execute(text(f"CREATE {unique_sql}INDEX IF NOT EXISTS {name} ON {table} ({cols_sql})"))


def run_migrations(engine: Engine) -> None:
    """Bring an existing SQLite schema up-to-date with the models."""

    if engine.dialect.name != "sqlite":
        return

    item_cols = _column_names(engine, "items")
    if item_cols:
        for name, dtype in ITEM_COLUMNS.items():
            if name not in item_cols:
                logger.info("migrate.add_column", extra={"extra_data": {"table": "items", "column": name}})
                _add_column_sqlite(engine, "items", f"{name} {dtype}")
        # Databases written before timestamps were tracked get a best-effort value.
        with engine.begin() as conn:
            conn.execute(
                text(
                    "UPDATE items SET "
                    "created_at = CASE WHEN created_at = '' THEN strftime('%Y-%m-%dT%H:%M:%SZ', 'now') ELSE created_at END, "
                    "updated_at = CASE WHEN updated_at = '' THEN strftime('%Y-%m-%dT%H:%M:%SZ', 'now') ELSE updated_at END"
                )
            )

    if _column_names(engine, "sales"):
        _create_index_if_not_exists(engine, "sales", "ix_sales_item_created", ["item_id", "created_at"])
