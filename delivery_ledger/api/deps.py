"""Shared FastAPI dependencies."""

from collections.abc import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from delivery_ledger.db.session import Database


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(request: Request) -> Generator[Session, None, None]:
    """Yield a writing session bound to the application's database and close it afterwards."""
    db: Session = get_database(request).session()
    try:
        yield db
    finally:
        db.close()


def get_read_db(request: Request) -> Generator[Session, None, None]:
    """Like `get_db`, for routes that only read."""
    db: Session = get_database(request).read_session()
    try:
        yield db
    finally:
        db.close()
