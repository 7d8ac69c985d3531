from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from api.observability import (
    configure_logging,
    monotonic_ms,
    new_request_id,
    request_log_fields,
    reset_request_id,
    set_request_id,
)
from api.routes import router
from planner.bootstrap import ensure_ready
from planner.config import get_settings
from planner.db import Store, create_store
from planner.errors import (
    USER_RETRY_MESSAGE,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PersistenceError,
    PlannerError,
    RecordValidationError,
)
from planner.logging_config import log_context
from planner.services.notifications import build_notifier

logger = logging.getLogger(__name__)


def _error_status(exc: PlannerError) -> int:
    if isinstance(exc, InvalidInputError):
        return 422
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConflictError):
        return 409
    return 503


async def planner_error_handler(request: Request, exc: PlannerError) -> JSONResponse:
    status_code = _error_status(exc)
    if isinstance(exc, PersistenceError):
        logger.error("persistence_failure", extra=log_context(path=request.url.path, collection=exc.collection))
        return JSONResponse(status_code=status_code, content={"detail": USER_RETRY_MESSAGE})
    content: dict[str, object] = {"detail": str(exc), "error": type(exc).__name__}
    if isinstance(exc, RecordValidationError):
        content["fields"] = [{"field": e.field, "message": e.message} for e in exc.errors]
    return JSONResponse(status_code=status_code, content=content)


def create_app(store: Optional[Store] = None) -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = store is None
        app.state.store = store or create_store(settings.database_url)
        app.state.notifier = build_notifier(settings)
        seeded = await ensure_ready(app.state.store)
        logger.info("store_ready", extra=log_context(seeded=seeded, app_env=settings.app_env))
        try:
            yield
        finally:
            if owned:
                await app.state.store.dispose()

    app = FastAPI(
        title="Workout Planner API",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url=None if settings.is_production else "/openapi.json",
    )
    app.state.settings = settings
    app.add_exception_handler(PlannerError, planner_error_handler)
    app.include_router(router)

    @app.middleware("http")
    async def request_context_and_logging(request: Request, call_next: Callable) -> Response:
        header_name = settings.request_id_header_name or "X-Request-ID"
        request_id = (request.headers.get(header_name) or "").strip() or new_request_id()
        token = set_request_id(request_id)
        started_ms = monotonic_ms()
        client_ip = getattr(request.client, "host", None)
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = monotonic_ms() - started_ms
            logger.exception(
                "http_request_error",
                extra=request_log_fields(
                    method=request.method,
                    path=request.url.path,
                    status_code=500,
                    duration_ms=duration_ms,
                    client_ip=client_ip,
                ),
            )
            raise
        else:
            response.headers[header_name] = request_id
            duration_ms = monotonic_ms() - started_ms
            logger.info(
                "http_request",
                extra=request_log_fields(
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=duration_ms,
                    client_ip=client_ip,
                ),
            )
            return response
        finally:
            reset_request_id(token)

    return app


app = create_app()
