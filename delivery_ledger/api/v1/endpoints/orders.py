"""Order ledger endpoints."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from delivery_ledger.api.deps import get_db, get_read_db
from delivery_ledger.models import Order
from delivery_ledger.schemas.order import OrderCreated, OrderDoneUpdate, OrderInput, OrderRead, OrderSummary
from delivery_ledger.services import order_service

router = APIRouter()


@router.post("", response_model=OrderCreated, status_code=201)
def create_order(payload: OrderInput, db: Session = Depends(get_db)) -> OrderCreated:
    return OrderCreated(id=order_service.create_order(db, payload))


@router.get("", response_model=list[OrderSummary])
def list_orders(db: Session = Depends(get_read_db)) -> list[Order]:
    return order_service.list_orders(db)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, db: Session = Depends(get_read_db)) -> Order:
    return order_service.get_order(db, order_id)


@router.put("/{order_id}", status_code=204)
def update_order(order_id: int, payload: OrderInput, db: Session = Depends(get_db)) -> Response:
    order_service.update_order(db, order_id, payload)
    return Response(status_code=204)


@router.put("/{order_id}/done", status_code=204)
def set_order_done(order_id: int, payload: OrderDoneUpdate, db: Session = Depends(get_db)) -> Response:
    order_service.set_order_done(db, order_id, payload.done)
    return Response(status_code=204)


@router.delete("/{order_id}", status_code=204)
def delete_order(order_id: int, db: Session = Depends(get_db)) -> Response:
    order_service.delete_order(db, order_id)
    return Response(status_code=204)
