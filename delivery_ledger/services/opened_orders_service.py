"""Ordered list of orders currently open in the UI.

Positions are always dense (1..N). Two policies decide what opening an order
does:

- ``append``: a new order goes to the end, an already open one stays put.
- ``move_to_front``: the opened order becomes position 1, the rest keep their
  relative order behind it.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from delivery_ledger.core.config import settings
from delivery_ledger.core.errors import NotFound, translate_db_errors
from delivery_ledger.models import OpenedOrder, Order

logger = logging.getLogger(__name__)

APPEND_POLICY: str = "append"
MOVE_TO_FRONT_POLICY: str = "move_to_front"
OPENED_ORDER_POLICIES: tuple[str, ...] = (APPEND_POLICY, MOVE_TO_FRONT_POLICY)


def _entries_in_order(db: Session) -> list[OpenedOrder]:
    return list(db.scalars(select(OpenedOrder).order_by(OpenedOrder.position.asc(), OpenedOrder.order_id.asc())).all())


def _assign_positions(entries: list[OpenedOrder]) -> None:
    for position, entry in enumerate(entries, start=1):
        if entry.position != position:
            entry.position = position


def renumber_opened_orders(db: Session) -> None:
    """Close gaps in positions, keeping relative order. Does not commit."""
    _assign_positions(_entries_in_order(db))
    db.flush()


def open_order(db: Session, order_id: int, policy: str | None = None) -> None:
    effective_policy = policy or settings.opened_orders_policy
    if effective_policy not in OPENED_ORDER_POLICIES:
        raise ValueError(f"Unknown opened-orders policy: {effective_policy}")

    with translate_db_errors():
        if db.get(Order, order_id) is None:
            raise NotFound("Order", order_id)

        entries = _entries_in_order(db)
        current = next((entry for entry in entries if entry.order_id == order_id), None)

        if effective_policy == APPEND_POLICY:
            if current is None:
                next_position = max((entry.position for entry in entries), default=0) + 1
                db.add(OpenedOrder(order_id=order_id, position=next_position))
        else:
            if current is None:
                current = OpenedOrder(order_id=order_id, position=0)
                db.add(current)
            rest = [entry for entry in entries if entry.order_id != order_id]
            _assign_positions([current, *rest])
        db.commit()
    logger.debug("[OPENED] opened order %s (%s)", order_id, effective_policy)


def close_opened_order(db: Session, order_id: int) -> None:
    """Remove an order from the list and renumber the rest in the same transaction."""
    with translate_db_errors():
        entry = db.get(OpenedOrder, order_id)
        if entry is not None:
            db.delete(entry)
            db.flush()
        renumber_opened_orders(db)
        db.commit()
    logger.debug("[OPENED] closed order %s", order_id)


def list_opened_orders(db: Session) -> list[dict[str, int | str]]:
    rows = db.execute(
        select(OpenedOrder.order_id, Order.article_name, OpenedOrder.position)
        .join(Order, Order.id == OpenedOrder.order_id)
        .order_by(OpenedOrder.position.asc())
    ).mappings().all()
    return [dict(row) for row in rows]
