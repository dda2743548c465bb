"""API v1 router composition."""

from fastapi import APIRouter

from delivery_ledger.api.v1.endpoints import articles, companies, dashboard, opened_orders, orders, preferences

api_router: APIRouter = APIRouter()
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(opened_orders.router, prefix="/opened-orders", tags=["opened-orders"])
api_router.include_router(articles.router, prefix="/articles", tags=["articles"])
api_router.include_router(companies.router, prefix="/companies", tags=["companies"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(preferences.router, tags=["preferences"])
