"""Article-name autocomplete endpoints used by the order form."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from delivery_ledger.api.deps import get_read_db
from delivery_ledger.services import order_service

router = APIRouter()


@router.get("/search", response_model=list[str])
def search_article_names(
    query: str = "",
    limit: int | None = Query(default=None),
    db: Session = Depends(get_read_db),
) -> list[str]:
    return order_service.search_article_names(db, query, limit)


@router.get("/latest-description")
def latest_description(name: str, db: Session = Depends(get_read_db)) -> dict[str, str | None]:
    return {"description": order_service.latest_description_for_article(db, name)}
