"""Shared SQLAlchemy base declarative class."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ORM models.

    Tables are owned by the schema manager in `delivery_ledger.db.migrations`;
    the mappings only describe them for the services.
    """
