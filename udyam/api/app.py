"""FastAPI application entry point for the Udyam registration service."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from udyam.api.routes import router
from udyam.config.settings import AppSettings
from udyam.errors import (
    CatalogUnreadableError,
    PersistenceError,
    ServiceError,
    StorageUnavailableError,
    UnhandledRouteError,
    ValidationError,
)
from udyam.storage.database import Database
from udyam.telemetry.errors import ErrorCode, emit_structured_error

logger = logging.getLogger(__name__)


def _error_envelope(
    status_code: int,
    message: str,
    detail: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "error": message}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _service_error_response(
    request: Request, exc: ServiceError, settings: AppSettings
) -> JSONResponse:
    detail = None
    headers = None

    if isinstance(exc, (PersistenceError, CatalogUnreadableError)):
        cause = exc.__cause__ or exc
        if isinstance(exc, StorageUnavailableError):
            code = ErrorCode.STORAGE_UNAVAILABLE
            headers = {"Retry-After": str(exc.retry_after_s)}
        elif isinstance(exc, PersistenceError):
            code = ErrorCode.PERSISTENCE_FAILED
        else:
            code = ErrorCode.CATALOG_UNREADABLE
        emit_structured_error(
            logger,
            code=code,
            message=str(cause),
            suppressed=True,
            path=request.url.path,
        )
        if not settings.api.is_production:
            detail = str(cause)

    public = exc.message if not isinstance(exc, PersistenceError) else exc.public_message
    return _error_envelope(exc.status_code, public, detail=detail, headers=headers)


def _register_error_handlers(app: FastAPI, settings: AppSettings) -> None:
    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        return _service_error_response(request, exc, settings)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error_envelope(400, ValidationError("Invalid request body").message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:
            error = UnhandledRouteError()
            return _error_envelope(error.status_code, error.message)
        return _error_envelope(exc.status_code, str(exc.detail), headers=exc.headers)


def create_app(settings: AppSettings | None = None, database: Database | None = None) -> FastAPI:
    """Factory function for creating the FastAPI application."""
    settings = settings or AppSettings()
    database = database or Database(settings.database)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await database.connect()
        try:
            await database.create_schema()
        except (SQLAlchemyError, OSError) as exc:
            emit_structured_error(
                logger,
                code=ErrorCode.STORAGE_UNAVAILABLE,
                message=str(exc),
                suppressed=True,
                details={"stage": "startup"},
            )
        logger.info(
            "Udyam API started (environment=%s, origins=%s)",
            settings.api.environment,
            ",".join(settings.api.allowed_origins),
        )
        try:
            yield
        finally:
            await database.dispose()
            logger.info("Udyam API stopped")

    app = FastAPI(
        title="Udyam Registration",
        description="Udyam registration form catalog and submission API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Any) -> Any:
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            emit_structured_error(
                logger,
                code=ErrorCode.UNHANDLED_EXCEPTION,
                message=repr(exc),
                suppressed=True,
                path=request.url.path,
            )
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            detail = None if settings.api.is_production else repr(exc)
            response = _error_envelope(500, ServiceError().message, detail=detail)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    # Added last so it wraps the logging middleware and error envelopes get CORS headers.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    _register_error_handlers(app, settings)
    app.include_router(router, prefix="/api")

    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.api.environment,
            "allowed_origins": settings.api.allowed_origins,
        }

    return app


app = create_app()
