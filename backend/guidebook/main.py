"""
Guidebook — FastAPI Application Factory
========================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn guidebook.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware Chain:                                       │
    │  RequestID → Logging → Timing → Maintenance              │
    │            → RateLimit → ApiKey → GZip → CORS            │
    │                                                          │
    │  Routes:                                                 │
    │  GET /  GET /about  GET /health                          │
    │  /api/guides[/latest|/by-id/{id}|/{slug}[/sections/{n}]] │
    │  /api/categories/{category}/guides                       │
    │  /api/routes  /api/inspect/query                         │
    │                                                          │
    │  Exception Handlers:                                     │
    │  GuidebookError subclasses → their status → JSON body    │
    │  Unhandled exceptions → 500 in RequestIDMiddleware       │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → create tables (optional) → seed samples (optional)
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from guidebook import __version__
from guidebook.config import settings
from guidebook.database import async_session_factory, dispose_engine, init_models
from guidebook.exceptions import (
    DatabaseError,
    GuidebookError,
    RateLimitExceededError,
    ServiceUnavailableError,
)
from guidebook.middleware.api_key import ApiKeyMiddleware
from guidebook.middleware.logging import RequestLoggingMiddleware
from guidebook.middleware.maintenance import MaintenanceMiddleware
from guidebook.middleware.rate_limit import RateLimitMiddleware
from guidebook.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIDLogFilter,
    RequestIDMiddleware,
    request_id_var,
)
from guidebook.middleware.timing import PROCESS_TIME_HEADER, TimingMiddleware
from guidebook.routes import guides, health, inspect, pages
from guidebook.services.seed import seed_sample_guides

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s

    The request id comes from RequestIDLogFilter, attached to the handler so
    records from every logger (ours and third-party) carry it.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Create tables when AUTO_CREATE_TABLES is on (Alembic otherwise)
        3. Insert sample guides into an empty table when SEED_SAMPLE_DATA is on
    Shutdown:
        1. Dispose database engine (close all pooled connections)
    """
    setup_logging()
    logger.info("Guidebook %s starting up...", __version__)

    if settings.auto_create_tables:
        await init_models()
        logger.info("Database tables ensured")

    if settings.seed_sample_data:
        async with async_session_factory() as session:
            inserted = await seed_sample_guides(session)
            await session.commit()
        if inserted:
            logger.info("Inserted %d sample guides", inserted)

    if settings.maintenance_mode:
        logger.warning("Maintenance mode is ON: API requests will receive 503")
    if not settings.api_keys_set:
        logger.warning("No API_KEYS configured: write requests will be rejected")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Guidebook shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        DatabaseError           → 500, generic message, context logged only
        RateLimitExceededError  → 429 + Retry-After
        ServiceUnavailableError → 503 + Retry-After
        GuidebookError (base)   → exc.status_code (400, 401, 404, 409, ...)

    Anything else propagates to RequestIDMiddleware, which logs it and
    answers 500 `internal_server_error` with the request id attached.

    Security: handlers never put stack traces or SQL in the response body.
    """

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_payload(rid, include_details=False),
        )

    @app.exception_handler(RateLimitExceededError)
    @app.exception_handler(ServiceUnavailableError)
    async def handle_retryable(request: Request, exc: GuidebookError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_payload(rid),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(GuidebookError)
    async def handle_guidebook_error(request: Request, exc: GuidebookError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload(rid))


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Guidebook API",
        description=(
            "Framework guides served through static routes, dynamic path "
            "parameters, validated query parameters and a middleware chain."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added = outermost).
    # Added: CORS → GZip → ApiKey → RateLimit → Maintenance → Timing → Logging → RequestID
    # Runs:  RequestID → Logging → Timing → Maintenance → RateLimit → ApiKey → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            REQUEST_ID_HEADER,
            PROCESS_TIME_HEADER,
            "X-Total-Count",
            "Retry-After",
            "Location",
        ],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(ApiKeyMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(MaintenanceMiddleware)
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(pages.router)
    app.include_router(health.router)
    app.include_router(guides.router)
    app.include_router(inspect.router)

    return app


app = create_app()
