"""Order ledger models."""

from datetime import date

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from delivery_ledger.db.base import Base
from delivery_ledger.utils.time import SQLITE_TIMESTAMP_SQL


class Order(Base):
    """One customer delivery request."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    client_name: Mapped[str] = mapped_column(Text, nullable=False)
    article_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    phone: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    delivery_company: Mapped[str] = mapped_column(Text, nullable=False)
    delivery_company_id: Mapped[int | None] = mapped_column(ForeignKey("delivery_companies.id"), nullable=True)
    delivery_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    done: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # ISO-8601 UTC text, assigned by the database on insert.
    created_at: Mapped[str] = mapped_column(Text, nullable=False, server_default=text(f"({SQLITE_TIMESTAMP_SQL})"))


class OpenedOrder(Base):
    """Position of an order in the list of orders currently open in the UI."""

    __tablename__ = "opened_orders"

    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
