"""Shared fixtures: one ledger file per test under tmp_path."""

from collections.abc import Callable, Iterator
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import text
from sqlalchemy.orm import Session

from delivery_ledger.db.session import Database, open_database
from delivery_ledger.schemas.order import OrderInput
from delivery_ledger.services.order_service import create_order, set_order_done
from delivery_ledger.utils.time import format_utc_timestamp

DEFAULT_ORDER: dict[str, Any] = {
    "client_name": "Jan Kowalski",
    "article_name": "Oak table",
    "phone": "+48 600 100 200",
    "city": "Krakow",
    "address": "Main Street 1",
    "delivery_company": "Acme",
    "delivery_date": date(2026, 1, 15),
    "description": None,
}


@pytest.fixture
def database(tmp_path: Path) -> Iterator[Database]:
    ledger = open_database(tmp_path / "ledger.db")
    try:
        yield ledger
    finally:
        ledger.dispose()


@pytest.fixture
def db(database: Database) -> Iterator[Session]:
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_order(db: Session) -> Callable[..., int]:
    """Create an order through the service, optionally pinning created_at and done."""

    def _make_order(*, created_at: datetime | None = None, done: bool = False, **overrides: Any) -> int:
        order_id = create_order(db, OrderInput(**{**DEFAULT_ORDER, **overrides}))
        if done:
            set_order_done(db, order_id, True)
        if created_at is not None:
            db.execute(
                text("UPDATE orders SET created_at = :created_at WHERE id = :order_id"),
                {"created_at": format_utc_timestamp(created_at), "order_id": order_id},
            )
            db.commit()
        return order_id

    return _make_order
