"""Error taxonomy shared by the data layer and the HTTP surface."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError


class LedgerError(Exception):
    """Base class for all ledger errors."""


class StorageUnavailable(LedgerError):
    """Raised when the database file cannot be created or opened."""


class SchemaMigrationFailed(LedgerError):
    """Raised when a schema step fails; the original error is the __cause__."""

    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"Schema step '{step}' failed: {message}")
        self.step = step


class NotFound(LedgerError):
    """Raised when an order or company id does not exist."""

    def __init__(self, entity: str, entity_id: int) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidCompanyName(LedgerError, ValueError):
    """Raised for blank or whitespace-only delivery company names."""


class ConstraintViolation(LedgerError):
    """Raised when a write would break a uniqueness or integrity rule."""


class Busy(LedgerError):
    """Raised when the database stayed locked past the busy timeout. Retryable."""


_BUSY_MARKERS: tuple[str, ...] = ("database is locked", "database is busy", "database table is locked")


def is_busy_error(exc: OperationalError) -> bool:
    """Return True when an OperationalError is SQLite lock contention."""
    message = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in message for marker in _BUSY_MARKERS)


@contextmanager
def translate_db_errors() -> Iterator[None]:
    """Re-raise driver errors as ledger errors, keeping the original as __cause__."""
    try:
        yield
    except IntegrityError as exc:
        raise ConstraintViolation(str(exc.orig)) from exc
    except OperationalError as exc:
        if is_busy_error(exc):
            raise Busy(str(exc.orig)) from exc
        raise
