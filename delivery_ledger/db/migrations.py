"""Idempotent schema management for the SQLite ledger file."""

from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy import text
from sqlalchemy.engine import Connection

from delivery_ledger.core.errors import SchemaMigrationFailed
from delivery_ledger.utils.time import SQLITE_TIMESTAMP_SQL

logger = logging.getLogger(__name__)

MigrationStep = Callable[[Connection], None]

BASE_TABLES: list[tuple[str, str]] = [
    (
        "delivery_companies",
        f"""
        CREATE TABLE delivery_companies (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE COLLATE NOCASE,
            active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL DEFAULT ({SQLITE_TIMESTAMP_SQL})
        )
        """,
    ),
    (
        "orders",
        f"""
        CREATE TABLE orders (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            client_name TEXT NOT NULL,
            article_name TEXT NOT NULL DEFAULT '',
            phone TEXT NOT NULL,
            city TEXT NOT NULL,
            address TEXT NOT NULL,
            delivery_company TEXT NOT NULL,
            delivery_date TEXT NOT NULL,
            description TEXT,
            done INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT ({SQLITE_TIMESTAMP_SQL}),
            delivery_company_id INTEGER REFERENCES delivery_companies(id)
        )
        """,
    ),
    (
        "opened_orders",
        """
        CREATE TABLE opened_orders (
            order_id INTEGER PRIMARY KEY,
            position INTEGER NOT NULL,
            FOREIGN KEY(order_id) REFERENCES orders(id) ON DELETE CASCADE
        )
        """,
    ),
    (
        "settings",
        f"""
        CREATE TABLE settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL DEFAULT ({SQLITE_TIMESTAMP_SQL})
        )
        """,
    ),
    (
        "theme",
        f"""
        CREATE TABLE theme (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL DEFAULT ({SQLITE_TIMESTAMP_SQL})
        )
        """,
    ),
]

# (table, column, column definition) for columns that older files may lack.
ADDITIVE_COLUMNS: list[tuple[str, str, str]] = [
    ("orders", "delivery_company_id", "delivery_company_id INTEGER REFERENCES delivery_companies(id)"),
    ("orders", "article_name", "article_name TEXT NOT NULL DEFAULT ''"),
    ("orders", "done", "done INTEGER NOT NULL DEFAULT 0"),
]

INDEXES: list[tuple[str, str]] = [
    (
        "idx_delivery_companies_active_name",
        "CREATE INDEX idx_delivery_companies_active_name ON delivery_companies(active, name)",
    ),
    (
        "idx_orders_delivery_company_id",
        "CREATE INDEX idx_orders_delivery_company_id ON orders(delivery_company_id)",
    ),
    (
        "idx_orders_article_name",
        "CREATE INDEX idx_orders_article_name ON orders(article_name)",
    ),
    (
        "idx_orders_done_created_at",
        "CREATE INDEX idx_orders_done_created_at ON orders(done, created_at DESC)",
    ),
]

# Company-name sync now lives in the services; older files may still carry these.
LEGACY_TRIGGERS: tuple[str, ...] = ("tr_orders_sync_company_name", "tr_orders_set_company_text")


def _sqlite_column_names(connection: Connection, table_name: str) -> set[str]:
    """Return column names for a SQLite table using PRAGMA table_info."""
    rows = connection.execute(text(f"PRAGMA table_info({table_name});")).mappings().all()
    return {str(row["name"]) for row in rows}


def _sqlite_object_names(connection: Connection, object_type: str) -> set[str]:
    """Return names of tables, indexes or triggers recorded in sqlite_master."""
    rows = connection.execute(
        text("SELECT name FROM sqlite_master WHERE type = :object_type"),
        {"object_type": object_type},
    ).all()
    return {str(row[0]) for row in rows}


def _create_tables(connection: Connection) -> None:
    table_names = _sqlite_object_names(connection, "table")
    for table_name, ddl in BASE_TABLES:
        if table_name in table_names:
            continue
        connection.execute(text(ddl))
        logger.info("[SCHEMA] created table %s", table_name)


def _add_missing_columns(connection: Connection) -> None:
    columns_by_table: dict[str, set[str]] = {}
    for table_name, column_name, definition in ADDITIVE_COLUMNS:
        if table_name not in columns_by_table:
            columns_by_table[table_name] = _sqlite_column_names(connection, table_name)
        if column_name in columns_by_table[table_name]:
            continue
        connection.execute(text(f"ALTER TABLE {table_name} ADD COLUMN {definition}"))
        columns_by_table[table_name].add(column_name)
        logger.info("[SCHEMA] added column %s.%s", table_name, column_name)


def _backfill_companies(connection: Connection) -> None:
    result = connection.execute(
        text(
            """
            INSERT OR IGNORE INTO delivery_companies (name)
            SELECT DISTINCT TRIM(delivery_company)
            FROM orders
            WHERE TRIM(delivery_company) <> ''
            """
        )
    )
    if result.rowcount:
        logger.info("[SCHEMA] backfilled %s delivery companies from order text", result.rowcount)


def _link_orders_to_companies(connection: Connection) -> None:
    result = connection.execute(
        text(
            """
            UPDATE orders
            SET delivery_company_id = (
                SELECT c.id FROM delivery_companies c
                WHERE c.name = TRIM(orders.delivery_company)
            )
            WHERE (delivery_company_id IS NULL OR delivery_company_id = 0)
              AND TRIM(delivery_company) <> ''
            """
        )
    )
    if result.rowcount:
        logger.info("[SCHEMA] linked %s orders to delivery companies", result.rowcount)


def _create_indexes(connection: Connection) -> None:
    index_names = _sqlite_object_names(connection, "index")
    for index_name, ddl in INDEXES:
        if index_name in index_names:
            continue
        connection.execute(text(ddl))
        logger.info("[SCHEMA] created index %s", index_name)


def _retire_sync_triggers(connection: Connection) -> None:
    trigger_names = _sqlite_object_names(connection, "trigger")
    for trigger_name in LEGACY_TRIGGERS:
        if trigger_name not in trigger_names:
            continue
        connection.execute(text(f"DROP TRIGGER {trigger_name}"))
        logger.info("[SCHEMA] dropped legacy trigger %s", trigger_name)


def _resync_company_text(connection: Connection) -> None:
    # COLLATE BINARY so that case-only drift is repaired as well.
    result = connection.execute(
        text(
            """
            UPDATE orders
            SET delivery_company = (
                SELECT c.name FROM delivery_companies c
                WHERE c.id = orders.delivery_company_id
            )
            WHERE EXISTS (
                SELECT 1 FROM delivery_companies c
                WHERE c.id = orders.delivery_company_id
                  AND c.name <> orders.delivery_company COLLATE BINARY
            )
            """
        )
    )
    if result.rowcount:
        logger.info("[SCHEMA] re-synced company text on %s orders", result.rowcount)


MIGRATION_STEPS: list[tuple[str, MigrationStep]] = [
    ("create_tables", _create_tables),
    ("add_missing_columns", _add_missing_columns),
    ("backfill_companies", _backfill_companies),
    ("link_orders_to_companies", _link_orders_to_companies),
    ("create_indexes", _create_indexes),
    ("retire_sync_triggers", _retire_sync_triggers),
    ("resync_company_text", _resync_company_text),
]


def ensure_schema(connection: Connection) -> None:
    """Bring the ledger schema up to date inside a savepoint.

    Safe to call repeatedly and from inside a caller's transaction: all steps
    run in a nested savepoint, so a failure rolls back only this call's work
    and the caller's transaction stays usable. The failure is raised as
    SchemaMigrationFailed with the database error as its __cause__.
    """
    savepoint = connection.begin_nested()
    step_name = ""
    try:
        for step_name, step in MIGRATION_STEPS:
            step(connection)
    except Exception as exc:
        logger.error("[SCHEMA] step %s failed: %s", step_name, exc)
        try:
            savepoint.rollback()
        except Exception:
            logger.warning("[SCHEMA] savepoint rollback failed after step %s", step_name, exc_info=True)
        raise SchemaMigrationFailed(step_name, str(exc)) from exc
    savepoint.commit()
    logger.debug("[SCHEMA] schema up to date")
