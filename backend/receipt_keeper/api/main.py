"""Entry point for the FastAPI application.

This module constructs the FastAPI app, includes all routers and sets
up startup and shutdown handling.  Run it with
``uvicorn receipt_keeper.api.main:app``.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from receipt_keeper.api.endpoints.health import router as health_router
from receipt_keeper.api.error_handlers import (
    domain_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from receipt_keeper.api.routes.auth import router as auth_router
from receipt_keeper.api.routes.receipts import router as receipts_router
from receipt_keeper.api.routes.users import router as users_router
from receipt_keeper.core.config import settings
from receipt_keeper.core.database import dispose_engine, init_db
from receipt_keeper.core.exceptions import ReceiptKeeperError
from receipt_keeper.core.observability import init_sentry

# Configure logging
logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    logger.info("Starting up (%s)...", settings.ENVIRONMENT)
    init_sentry("api")
    if settings.DB_CREATE_TABLES_ON_STARTUP:
        await init_db()
    yield
    logger.info("Shutting down...")
    await dispose_engine()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan,
)


# Middleware logging one line per request
@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "%s %s -> %s (%.1f ms)",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response

"""CORS configuration.

In development allow all origins; otherwise use BACKEND_CORS_ORIGINS,
deduplicated with order preserved.
"""
if settings.is_development:
    allow_origins = ["*"]
else:
    allow_origins = list(dict.fromkeys(settings.BACKEND_CORS_ORIGINS or []))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials="*" not in allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register custom exception handlers
app.add_exception_handler(ReceiptKeeperError, domain_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include routers
app.include_router(health_router)
app.include_router(auth_router, prefix=settings.API_V1_STR)
app.include_router(users_router, prefix=settings.API_V1_STR)
app.include_router(receipts_router, prefix=settings.API_V1_STR)


@app.get(f"{settings.API_V1_STR}/ping")
async def ping():
    return {"message": "pong"}
