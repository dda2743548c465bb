"""FastAPI entrypoint exposing the ledger operations to the desktop front end."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from delivery_ledger.api.v1.api import api_router
from delivery_ledger.core.config import Settings, settings
from delivery_ledger.core.errors import (
    Busy,
    ConstraintViolation,
    InvalidCompanyName,
    LedgerError,
    NotFound,
)
from delivery_ledger.db.session import Database, open_database

logger = logging.getLogger(__name__)


def _error_response(status_code: int, exc: Exception, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Map the ledger error taxonomy onto HTTP status codes."""

    @app.exception_handler(NotFound)
    def _not_found(request: Request, exc: NotFound) -> JSONResponse:
        return _error_response(404, exc)

    @app.exception_handler(InvalidCompanyName)
    def _invalid_company(request: Request, exc: InvalidCompanyName) -> JSONResponse:
        return _error_response(422, exc)

    @app.exception_handler(ConstraintViolation)
    def _constraint(request: Request, exc: ConstraintViolation) -> JSONResponse:
        return _error_response(409, exc)

    @app.exception_handler(Busy)
    def _busy(request: Request, exc: Busy) -> JSONResponse:
        logger.warning("[DB] busy on %s %s: %s", request.method, request.url.path, exc)
        return _error_response(503, exc, headers={"Retry-After": "1"})

    @app.exception_handler(LedgerError)
    def _ledger_error(request: Request, exc: LedgerError) -> JSONResponse:
        logger.error("[DB] %s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
        return _error_response(500, exc)


def create_app(database: Database | None = None, app_settings: Settings = settings) -> FastAPI:
    """Build the application; without `database` the configured file is opened on startup."""
    app = FastAPI(title=app_settings.app_name)
    app.state.database = database
    app.include_router(api_router, prefix="/api/v1")
    register_exception_handlers(app)

    @app.on_event("startup")
    def startup() -> None:
        logging.basicConfig(level=app_settings.log_level.upper())
        if app.state.database is None:
            app.state.database = open_database(
                app_settings.database_path,
                busy_timeout_ms=app_settings.busy_timeout_ms,
                echo=app_settings.debug,
            )
            app.state.owns_database = True
        logger.info("[BOOTSTRAP] ledger database: %s", app.state.database.path)

    @app.on_event("shutdown")
    def shutdown() -> None:
        if getattr(app.state, "owns_database", False):
            app.state.database.dispose()

    @app.get("/health")
    def health() -> dict[str, str]:
        current = app.state.database
        return {"status": "ok", "journal_mode": current.journal_mode if current is not None else "unknown"}

    return app


app = create_app()
