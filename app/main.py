from __future__ import annotations

import logging
import time
import traceback
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import router
from app.web import router as web_router
from datastore.config_store import build_default_config_resolver
from logging_config import configure_logging
from services.dashboard import build_default_dashboard_service
from services.detail import build_default_detail_service
from settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # Warm the config cache; a bad file only logs and is retried per request.
    build_default_config_resolver().get()
    try:
        yield
    finally:
        build_default_dashboard_service.cache_clear()
        build_default_detail_service.cache_clear()


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error: %s",
        exc,
        exc_info=exc,
        extra={"method": request.method, "path": request.url.path},
    )
    error: dict[str, str] = {"message": str(exc) or "Internal Server Error"}
    if get_settings().is_development:
        error["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content={"error": error})


def create_app() -> FastAPI:
    configure_logging()
    settings = get_settings()
    app = FastAPI(
        title="Facility Dashboard",
        description="Fill levels, product weights and collection events for the factory floor.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s",
            request.method,
            request.url.path,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return response

    app.add_exception_handler(Exception, handle_unexpected_error)
    app.include_router(router)
    app.include_router(web_router)
    return app

app = create_app()
