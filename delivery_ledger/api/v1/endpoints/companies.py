"""Delivery company directory endpoints."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from delivery_ledger.api.deps import get_db, get_read_db
from delivery_ledger.models import Company
from delivery_ledger.schemas.company import (
    CompanyActiveUpdate,
    CompanyCreate,
    CompanyCreated,
    CompanyRead,
    CompanyRename,
)
from delivery_ledger.services import company_service

router = APIRouter()


@router.get("", response_model=list[CompanyRead])
def list_companies(db: Session = Depends(get_read_db)) -> list[Company]:
    return company_service.list_companies(db)


@router.post("", response_model=CompanyCreated)
def add_company(payload: CompanyCreate, db: Session = Depends(get_db)) -> CompanyCreated:
    return CompanyCreated(id=company_service.add_company(db, payload.name))


@router.put("/{company_id}/active", status_code=204)
def set_company_active(company_id: int, payload: CompanyActiveUpdate, db: Session = Depends(get_db)) -> Response:
    company_service.set_company_active(db, company_id, payload.active)
    return Response(status_code=204)


@router.put("/{company_id}/name", status_code=204)
def rename_company(company_id: int, payload: CompanyRename, db: Session = Depends(get_db)) -> Response:
    company_service.rename_company(db, company_id, payload.name)
    return Response(status_code=204)
