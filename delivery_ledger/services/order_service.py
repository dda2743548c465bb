"""Order ledger operations: CRUD, list, article search and description lookup."""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from delivery_ledger.core.config import settings
from delivery_ledger.core.errors import NotFound, translate_db_errors
from delivery_ledger.models import Order
from delivery_ledger.schemas.order import OrderInput
from delivery_ledger.services.company_service import get_or_create_company
from delivery_ledger.services.opened_orders_service import renumber_opened_orders

logger = logging.getLogger(__name__)


def _apply_order_input(order: Order, payload: OrderInput, company_id: int, company_name: str) -> None:
    order.client_name = payload.client_name
    order.article_name = payload.article_name
    order.phone = payload.phone
    order.city = payload.city
    order.address = payload.address
    order.delivery_company = company_name
    order.delivery_company_id = company_id
    order.delivery_date = payload.delivery_date
    order.description = payload.description


def create_order(db: Session, payload: OrderInput) -> int:
    """Insert a new open order and return its id."""
    with translate_db_errors():
        company_id, company_name = get_or_create_company(db, payload.delivery_company)
        order = Order(done=False)
        _apply_order_input(order, payload, company_id, company_name)
        db.add(order)
        db.flush()
        order_id = order.id
        db.commit()
    logger.info("[ORDERS] created order %s (%s via %s)", order_id, payload.article_name, company_name)
    return order_id


def get_order(db: Session, order_id: int) -> Order:
    order = db.get(Order, order_id)
    if order is None:
        raise NotFound("Order", order_id)
    return order


def update_order(db: Session, order_id: int, payload: OrderInput) -> None:
    """Replace every business field of an order; `done` and `created_at` are kept."""
    with translate_db_errors():
        order = get_order(db, order_id)
        company_id, company_name = get_or_create_company(db, payload.delivery_company)
        _apply_order_input(order, payload, company_id, company_name)
        db.commit()


def set_order_done(db: Session, order_id: int, done: bool) -> None:
    with translate_db_errors():
        result = db.execute(update(Order).where(Order.id == order_id).values(done=done))
        if result.rowcount == 0:
            raise NotFound("Order", order_id)
        db.commit()


def delete_order(db: Session, order_id: int) -> None:
    """Delete an order; its opened-orders entry goes with it and the list is renumbered."""
    with translate_db_errors():
        result = db.execute(delete(Order).where(Order.id == order_id))
        if result.rowcount == 0:
            raise NotFound("Order", order_id)
        renumber_opened_orders(db)
        db.commit()
    logger.info("[ORDERS] deleted order %s", order_id)


def list_orders(db: Session) -> list[Order]:
    """Return all orders, newest first; ties on created_at fall back to id."""
    return list(db.scalars(select(Order).order_by(Order.created_at.desc(), Order.id.desc())).all())


def search_article_names(db: Session, query: str, limit: int | None = None) -> list[str]:
    """Return article names containing `query`, most used first, then most recently used.

    Matching is case-insensitive and `%`/`_` in the query match literally.
    """
    effective_limit = max(int(limit if limit is not None else settings.search_default_limit), 1)
    statement = (
        select(Order.article_name)
        .where(Order.article_name.icontains(query or "", autoescape=True))
        .group_by(Order.article_name)
        .order_by(func.count().desc(), func.max(Order.created_at).desc())
        .limit(effective_limit)
    )
    return list(db.scalars(statement).all())


def latest_description_for_article(db: Session, article_name: str) -> str | None:
    """Return the newest non-blank description used for exactly this article name."""
    statement = (
        select(Order.description)
        .where(
            Order.article_name == article_name,
            Order.description.is_not(None),
            func.trim(Order.description) != "",
        )
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(1)
    )
    return db.scalars(statement).first()
