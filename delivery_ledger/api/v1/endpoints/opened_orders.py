"""Endpoints for the list of orders currently open in the UI."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from delivery_ledger.api.deps import get_db, get_read_db
from delivery_ledger.schemas.order import OpenedOrderRead
from delivery_ledger.services import opened_orders_service

router = APIRouter()


@router.get("", response_model=list[OpenedOrderRead])
def list_opened_orders(db: Session = Depends(get_read_db)) -> list[dict[str, int | str]]:
    return opened_orders_service.list_opened_orders(db)


@router.post("/{order_id}", status_code=204)
def open_order(order_id: int, db: Session = Depends(get_db)) -> Response:
    opened_orders_service.open_order(db, order_id)
    return Response(status_code=204)


@router.delete("/{order_id}", status_code=204)
def close_opened_order(order_id: int, db: Session = Depends(get_db)) -> Response:
    opened_orders_service.close_opened_order(db, order_id)
    return Response(status_code=204)
