"""Order payload schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class OrderInput(BaseModel):
    """Business fields of an order, used for create and full-replace update."""

    client_name: str
    article_name: str
    phone: str
    city: str
    address: str
    delivery_company: str
    delivery_date: date
    description: str | None = None


class OrderRead(BaseModel):
    """Serialized order."""

    id: int
    client_name: str
    article_name: str
    phone: str
    city: str
    address: str
    delivery_company: str
    delivery_company_id: int | None
    delivery_date: date
    description: str | None
    done: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderSummary(BaseModel):
    """Row of the order list."""

    id: int
    article_name: str
    done: bool

    model_config = ConfigDict(from_attributes=True)


class OrderCreated(BaseModel):
    id: int


class OrderDoneUpdate(BaseModel):
    done: bool


class OpenedOrderRead(BaseModel):
    """Entry of the opened-orders list."""

    order_id: int
    article_name: str
    position: int

    model_config = ConfigDict(from_attributes=True)
