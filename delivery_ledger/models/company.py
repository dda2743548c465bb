"""Delivery company directory model."""

from sqlalchemy import Boolean, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from delivery_ledger.db.base import Base
from delivery_ledger.utils.time import SQLITE_TIMESTAMP_SQL


class Company(Base):
    """Canonical delivery company; `name` compares case-insensitively (NOCASE)."""

    __tablename__ = "delivery_companies"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(collation="NOCASE"), nullable=False, unique=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[str] = mapped_column(Text, nullable=False, server_default=text(f"({SQLITE_TIMESTAMP_SQL})"))
