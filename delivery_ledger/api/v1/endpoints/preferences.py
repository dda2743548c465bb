"""Settings and theme endpoints."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from delivery_ledger.api.deps import get_db, get_read_db
from delivery_ledger.schemas.settings import SettingUpdate, SettingValue, Theme
from delivery_ledger.services import settings_service, theme_service

router = APIRouter()


@router.get("/settings/{key}", response_model=SettingValue)
def get_setting(key: str, db: Session = Depends(get_read_db)) -> SettingValue:
    return SettingValue(key=key, value=settings_service.get_setting(db, key))


@router.put("/settings/{key}", status_code=204)
def set_setting(key: str, payload: SettingUpdate, db: Session = Depends(get_db)) -> Response:
    settings_service.set_setting(db, key, payload.value)
    return Response(status_code=204)


@router.get("/theme", response_model=Theme | None)
def get_theme(db: Session = Depends(get_read_db)) -> Theme | None:
    return theme_service.get_theme(db)


@router.put("/theme", status_code=204)
def save_theme(payload: Theme, db: Session = Depends(get_db)) -> Response:
    theme_service.save_theme(db, payload)
    return Response(status_code=204)


@router.get("/theme/confetti", response_model=list[str])
def get_confetti_palette(db: Session = Depends(get_read_db)) -> list[str]:
    return theme_service.get_confetti_palette(db)
