"""Database engine and session management."""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from delivery_ledger.core.errors import StorageUnavailable
from delivery_ledger.db.migrations import ensure_schema

logger = logging.getLogger(__name__)

DEFAULT_BUSY_TIMEOUT_MS: int = 5000

# Execution option read by the `begin` listener: "IMMEDIATE" takes the write lock at BEGIN.
BEGIN_MODE_OPTION: str = "sqlite_begin_mode"


def _apply_sqlite_pragmas(dbapi_connection, busy_timeout_ms: int) -> None:
    """Configure durability and locking on a fresh DBAPI connection."""
    # Let SQLAlchemy emit BEGIN/SAVEPOINT itself instead of the driver.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def build_engine(path: Path | str, *, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS, echo: bool = False) -> Engine:
    """Create a SQLite engine with WAL, busy timeout and foreign keys on every connection."""
    engine = create_engine(
        f"sqlite:///{path}",
        echo=echo,
        connect_args={"check_same_thread": False, "timeout": busy_timeout_ms / 1000},
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        _apply_sqlite_pragmas(dbapi_connection, busy_timeout_ms)

    @event.listens_for(engine, "begin")
    def _on_begin(connection) -> None:
        mode = connection.get_execution_options().get(BEGIN_MODE_OPTION)
        connection.exec_driver_sql(f"BEGIN {mode}" if mode else "BEGIN")

    return engine


class Database:
    """Engine plus session factory for one ledger file.

    Passed explicitly to the application and to tests; nothing in the package
    keeps a process-wide engine.
    """

    def __init__(self, engine: Engine, path: Path, journal_mode: str) -> None:
        self.engine = engine
        self.path = path
        self.journal_mode = journal_mode
        # Same pool; transactions on this view start with BEGIN IMMEDIATE.
        self.write_engine = engine.execution_options(**{BEGIN_MODE_OPTION: "IMMEDIATE"})
        self.SessionLocal = sessionmaker(bind=self.write_engine, autoflush=False)
        self.ReadSessionLocal = sessionmaker(bind=engine, autoflush=False)

    def session(self) -> Session:
        """Session for service calls that write."""
        return self.SessionLocal()

    def read_session(self) -> Session:
        """Session for read-only queries such as the dashboard; never blocks writers."""
        return self.ReadSessionLocal()

    def ensure_schema(self) -> None:
        """Run the schema manager in its own transaction."""
        with self.write_engine.begin() as connection:
            ensure_schema(connection)

    def dispose(self) -> None:
        self.engine.dispose()


def open_database(
    path: Path | str,
    *,
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
    echo: bool = False,
    ensure: bool = True,
) -> Database:
    """Open (creating if needed) the ledger file and bring its schema up to date.

    Raises StorageUnavailable when the file or its directory cannot be created
    or opened. A journal mode other than WAL is logged and tolerated.
    """
    db_path = Path(path)
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StorageUnavailable(f"Cannot create data directory {db_path.parent}: {exc}") from exc

    engine = build_engine(db_path, busy_timeout_ms=busy_timeout_ms, echo=echo)
    try:
        with engine.connect() as connection:
            journal_mode = str(connection.exec_driver_sql("PRAGMA journal_mode").scalar() or "")
    except SQLAlchemyError as exc:
        engine.dispose()
        raise StorageUnavailable(f"Cannot open database {db_path}: {exc}") from exc

    if journal_mode.lower() != "wal":
        logger.warning("[DB] journal_mode stayed at %s for %s; WAL may be unsupported here.", journal_mode, db_path)
    else:
        logger.debug("[DB] opened %s (journal_mode=%s)", db_path, journal_mode)

    database = Database(engine, db_path, journal_mode)
    if ensure:
        try:
            database.ensure_schema()
        except Exception:
            engine.dispose()
            raise
    return database
