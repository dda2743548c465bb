"""Delivery company directory: canonical names and get-or-create."""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from delivery_ledger.core.errors import ConstraintViolation, InvalidCompanyName, NotFound, translate_db_errors
from delivery_ledger.models import Company, Order

logger = logging.getLogger(__name__)


def normalize_company_name(name: str | None) -> str:
    """Trim a company name and reject blank input."""
    trimmed = (name or "").strip()
    if not trimmed:
        raise InvalidCompanyName("Delivery company name must not be blank")
    return trimmed


def find_company_by_name(db: Session, name: str) -> Company | None:
    """Case-insensitive lookup (the column is declared COLLATE NOCASE)."""
    return db.scalars(select(Company).where(Company.name == name.strip())).first()


def get_company(db: Session, company_id: int) -> Company:
    company = db.get(Company, company_id)
    if company is None:
        raise NotFound("Company", company_id)
    return company


def get_or_create_company(db: Session, name: str | None) -> tuple[int, str]:
    """Return (id, canonical name) for `name`, inserting it if no case-insensitive match exists.

    The canonical name is the first-seen casing, so it may differ from `name`.
    Does not commit; callers write the order in the same transaction.
    """
    trimmed = normalize_company_name(name)
    result = db.execute(sqlite_insert(Company).values(name=trimmed, active=True).on_conflict_do_nothing())
    if result.rowcount:
        logger.info("[COMPANIES] created delivery company %r", trimmed)

    company = db.scalars(select(Company).where(Company.name == trimmed)).one()
    return company.id, company.name


def list_companies(db: Session) -> list[Company]:
    """Return active companies first, then by name."""
    return list(db.scalars(select(Company).order_by(Company.active.desc(), Company.name.asc())).all())


def add_company(db: Session, name: str) -> int:
    with translate_db_errors():
        company_id, _ = get_or_create_company(db, name)
        db.commit()
    return company_id


def set_company_active(db: Session, company_id: int, active: bool) -> None:
    with translate_db_errors():
        company = get_company(db, company_id)
        company.active = active
        db.commit()


def rename_company(db: Session, company_id: int, new_name: str) -> None:
    """Rename a company and propagate the new name to every order linked to it.

    Both writes share one transaction so order text never lags the directory.
    """
    trimmed = normalize_company_name(new_name)
    with translate_db_errors():
        company = get_company(db, company_id)
        clash = find_company_by_name(db, trimmed)
        if clash is not None and clash.id != company_id:
            raise ConstraintViolation(f"Delivery company {clash.name!r} already exists")

        previous_name = company.name
        company.name = trimmed
        db.flush()
        result = db.execute(
            update(Order)
            .where(Order.delivery_company_id == company_id)
            .values(delivery_company=trimmed)
            .execution_options(synchronize_session="fetch")
        )
        db.commit()
    logger.info(
        "[COMPANIES] renamed company %s %r -> %r (%s orders updated)",
        company_id,
        previous_name,
        trimmed,
        result.rowcount,
    )
