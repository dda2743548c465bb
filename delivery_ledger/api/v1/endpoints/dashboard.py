"""Dashboard endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from delivery_ledger.api.deps import get_read_db
from delivery_ledger.schemas.dashboard import DashboardPayload
from delivery_ledger.services.analytics_service import build_dashboard

router = APIRouter()


@router.get("", response_model=DashboardPayload)
def get_dashboard(db: Session = Depends(get_read_db)) -> DashboardPayload:
    return build_dashboard(db)
