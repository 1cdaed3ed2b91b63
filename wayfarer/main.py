"""
Wayfarer Backend - FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn wayfarer.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌───────────┐ ┌──────┐ ┌──────┐            │
    │  │  Req ID  │→│  Logging  │→│ GZip │→│ CORS │            │
    │  └──────────┘ └───────────┘ └──────┘ └──────┘            │
    │                                                          │
    │  Routes:                                                 │
    │  /auth  /spots  /lodgings  /ratings  /favorites          │
    │  /comments  /photos  /uploads  /export  /import          │
    │  /directions  /health                                    │
    │                                                          │
    │  app.state (built in lifespan):                          │
    │  engine, session_factory → PostgreSQL                    │
    │  documents               → MongoDB                       │
    │  spot_cache              → Redis                         │
    │  weather                 → OpenWeatherMap (httpx)        │
    │  files                   → local upload directory        │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (logged, not fatal)
    3. Build every backend client and attach it to app.state

    Shutdown:
    1. Close the weather HTTP client, Redis, MongoDB
    2. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from wayfarer import __version__
from wayfarer.config import settings
from wayfarer.database import build_engine, build_session_factory
from wayfarer.documents import DocumentStore
from wayfarer.exceptions import WayfarerError
from wayfarer.middleware.logging import RequestLoggingMiddleware
from wayfarer.middleware.request_id import RequestIDMiddleware, request_id_var
from wayfarer.routes import (
    auth,
    comments,
    directions,
    favorites,
    health,
    lodgings,
    photos,
    ratings,
    spots,
    transfer,
)
from wayfarer.services.cache_service import SpotCache
from wayfarer.services.file_service import FileService
from wayfarer.services.weather_service import WeatherService

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Internal server error"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build every backend client once and hang it on app.state; close them on
    shutdown. Nothing here opens a connection eagerly, so the server starts
    even when a backend is down and /health reports which one.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Wayfarer Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    engine = build_engine()
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    app.state.documents = DocumentStore()
    await app.state.documents.ensure_indexes()

    app.state.spot_cache = SpotCache.from_url()

    weather_client = WeatherService.build_client()
    app.state.weather = WeatherService(weather_client)
    if not app.state.weather.enabled:
        logger.info("OPENWEATHER_API_KEY not set; spots are served without weather")

    app.state.files = FileService()

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Wayfarer Backend shutting down...")
    await weather_client.aclose()
    await app.state.spot_cache.close()
    await app.state.documents.close()
    await engine.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(message: str, code: str, rid: str, details=None) -> dict:
    body = {"error": message, "code": code}
    if details:
        body["details"] = details
    body["requestId"] = rid
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Every error leaves the API as:

        {"error": "<human message>", "code": "<machine code>",
         "details": {...}?, "requestId": "<id>"}

    Handler hierarchy:
        WayfarerError           → exc.status_code (4xx keep details, 5xx do not)
        RequestValidationError  → 400 with per-field details
        HTTPException           → its own status (unknown route, bad method)
        Exception (fallback)    → 500

    Internal details (stack traces, SQL, driver messages) are logged
    server-side only.
    """

    @app.exception_handler(WayfarerError)
    async def handle_app_error(request: Request, exc: WayfarerError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            message = GENERIC_SERVER_ERROR
            details = None
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
            message = exc.message
            details = exc.context

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(message, exc.code, rid, details),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        fields = [
            {
                "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %s", rid, fields)
        return JSONResponse(
            status_code=400,
            content=_error_body("Validation failed", "validation_error", rid, {"fields": fields}),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        rid = request_id_var.get("")
        code = "not_found" if exc.status_code == 404 else "http_error"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail), code, rid),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(GENERIC_SERVER_ERROR, "server_error", rid),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Wayfarer API",
        description=(
            "Tourist spot catalogue: spots, lodgings, ratings, favorites, "
            "comments and photos, with bulk import/export."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(spots.router)
    app.include_router(lodgings.router)
    app.include_router(ratings.router)
    app.include_router(favorites.router)
    app.include_router(comments.router)
    app.include_router(photos.router)
    app.include_router(transfer.router)
    app.include_router(directions.router)
    app.include_router(health.router)

    return app


# uvicorn expects `wayfarer.main:app` to be importable
app = create_app()
