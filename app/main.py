from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Sequence

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import bme_router, dht_light_router, router
from app.stats import daily_router, router as stats_router
from datastore.base import StoreError
from datastore.factory import build_default_store
from logging_config import configure_logging
from services.classification import LightThresholds
from services.errors import ReadingValidationError
from services.readings import ReadingService
from services.stats import StatsService
from settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    try:
        store = build_default_store()
        store.ping()
        store.ensure_indexes()
    except StoreError as exc:
        logger.critical(
            "Reading store unreachable, aborting startup",
            exc_info=True,
            extra={"store_backend": settings.store_backend, "operation": exc.operation},
        )
        build_default_store.cache_clear()
        raise

    app.state.reading_service = ReadingService(
        store,
        thresholds=LightThresholds.from_sequence(settings.light_thresholds),
        timezone=settings.timezone,
        default_limit=settings.page_default_limit,
        max_limit=settings.page_max_limit,
    )
    app.state.stats_service = StatsService(store, timezone=settings.timezone)
    try:
        yield
    finally:
        store.close()
        build_default_store.cache_clear()


def format_validation_errors(errors: Sequence[Mapping[str, Any]]) -> str:
    """Render pydantic errors as ``field.path: message`` pairs."""
    parts = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = ".".join(location) or "body"
        parts.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request."


async def _request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": format_validation_errors(exc.errors())},
    )


async def _reading_validation_handler(
    _request: Request, exc: ReadingValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)},
    )


async def _store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error(
        "Store operation failed",
        exc_info=exc,
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "operation": exc.operation,
            "collection": exc.collection,
        },
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_app() -> FastAPI:
    configure_logging()
    settings = get_settings()
    app = FastAPI(
        title="ESP32 Sensors API",
        description="Collects DHT22 + light and BME680 readings and reports range statistics.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(ReadingValidationError, _reading_validation_handler)
    app.add_exception_handler(StoreError, _store_error_handler)
    app.include_router(router)
    app.include_router(dht_light_router)
    app.include_router(bme_router)
    app.include_router(stats_router)
    app.include_router(daily_router)
    return app


app = create_app()
