"""
GameSwipe Backend: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app(settings) wires configuration, database, the shared Steam
       HTTP client, middleware, exception handlers and routers, and returns
       the app. Tests call it with their own Settings.
Who:   uvicorn (`uvicorn gameswipe.main:app`) and the test-suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  Middleware: CORS → Request ID → Logging → Security Headers  │
    │              → Join Rate Limit                               │
    │                                                              │
    │  Routes:  /rooms  /rooms/join  /rooms/{id}                   │
    │           /steam/identity  /steam/library[/sync]  /health    │
    │                                                              │
    │  Exception Handlers:                                         │
    │    GameSwipeError → its own status + envelope                │
    │    RequestValidationError → 400 INVALID_REQUEST              │
    │    anything else → 500 INTERNAL_ERROR                        │
    └──────────────────────────────────────────────────────────────┘

app.state:
    settings         frozen Settings instance
    engine           AsyncEngine
    session_factory  async_sessionmaker bound to engine
    steam_http       shared httpx.AsyncClient for the Steam Web API

Shutdown disposes the engine and closes the HTTP client.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gameswipe import __version__
from gameswipe.config import Settings
from gameswipe.database import build_engine, build_session_factory, dispose_engine
from gameswipe.exceptions import (
    GameSwipeError,
    InternalError,
    InvalidRequestError,
    RateLimitExceededError,
)
from gameswipe.middleware.logging import RequestLoggingMiddleware
from gameswipe.middleware.rate_limit import JoinRateLimitMiddleware
from gameswipe.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from gameswipe.middleware.security_headers import SecurityHeadersMiddleware
from gameswipe.routes import health, rooms, steam

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configure the root logger once for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-operation chatter from libraries; the access log covers requests.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    # httpx logs full request URLs at INFO, and Steam URLs carry the API key.
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    logger.info("GameSwipe backend %s starting up", __version__)
    logger.info("Server ready at http://%s:%d", settings.host, settings.port)
    if not settings.steam_web_api_key:
        logger.warning("STEAM_WEB_API_KEY is not set; Steam endpoints will fail with INTERNAL_ERROR")

    yield

    logger.info("GameSwipe backend shutting down...")
    await app.state.steam_http.aclose()
    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Render every error as {"error": {"code", "message", "details"}}.

    GameSwipeError subclasses carry their own status and code. Request
    validation failures become 400 INVALID_REQUEST with the field errors as
    details. Anything else is a 500 whose traceback stays in the server log.
    """

    @app.exception_handler(GameSwipeError)
    async def handle_gameswipe_error(request: Request, exc: GameSwipeError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        else:
            logger.info("[%s] %s %s: %s", rid, exc.status_code, exc.code, exc.message)

        headers = {}
        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        logger.info("[%s] Validation error on %s %s", rid, request.method, request.url.path)
        error = InvalidRequestError(details=jsonable_encoder(exc.errors()))
        return JSONResponse(status_code=error.status_code, content=error.to_envelope())

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        error = InternalError()
        headers = {REQUEST_ID_HEADER: rid} if rid else {}
        return JSONResponse(status_code=error.status_code, content=error.to_envelope(), headers=headers)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: configuration to use; read from the environment when omitted.
    """
    if settings is None:
        settings = Settings()
    setup_logging(settings)

    app = FastAPI(
        title="GameSwipe API",
        description="Rooms, member sessions, Steam identity linking and owned-games sync.",
        version=__version__,
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.steam_http = httpx.AsyncClient(timeout=settings.steam_http_timeout)

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first: CORS → RequestID → Logging → SecurityHeaders → JoinRateLimit
    app.add_middleware(
        JoinRateLimitMiddleware,
        limit=settings.join_rate_limit_requests,
        window=settings.join_rate_limit_window,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER, "Retry-After"],
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(rooms.router)
    app.include_router(steam.router)

    return app


# uvicorn imports `gameswipe.main:app`.
app = create_app()
