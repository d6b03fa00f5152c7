"""
api/main.py -- FastAPI application entry point for gatekeep.

Exposes registration, login, logout and the cached /data endpoint over HTTP.
The HTML pages (entry page and /profile) live in web/routes.py and are
mounted by asgi.py.

Run with:      python main.py
               uvicorn asgi:app --reload

Lifespan handles startup (credential store, session manager, cache slot) and
shutdown (close DB connections) symmetrically. Tests swap the lifespan for
one that wires isolated stores -- see tests/conftest.py.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.data import router as data_router
from auth.exceptions import AuthError
from auth.service import AuthService
from auth.sessions import SessionManager
from auth.store import UserStore
from cache.store import SlotStore
from cache.ttl import TTLCache
from core.config import get_settings

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("gatekeep.api")

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI, interval: float) -> None:
    """Drop expired sessions every `interval` seconds.

    Only started when SESSION_TTL_SECONDS > 0. CancelledError from
    task.cancel() during shutdown propagates out of asyncio.sleep and unwinds
    the coroutine cleanly.
    """
    while True:
        await asyncio.sleep(interval)
        removed = app.state.sessions.purge_expired()
        if removed:
            logger.info("Purged %d expired sessions", removed)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.
    """
    settings = get_settings()
    logger.info("gatekeep starting up (debug=%s)", settings.debug)

    app.state.user_store = UserStore(settings.auth_db_url)
    app.state.sessions = SessionManager(ttl_seconds=settings.session_ttl_seconds)
    app.state.auth_service = AuthService(app.state.user_store, app.state.sessions)
    logger.info(
        "Auth initialized (users=%d, session_ttl=%ss)",
        app.state.user_store.count(),
        settings.session_ttl_seconds or "none",
    )

    app.state.slot_store = SlotStore(settings.data_cache_path)
    app.state.data_cache = TTLCache(app.state.slot_store, ttl_seconds=settings.data_cache_ttl_seconds)
    logger.info("Data cache initialized (ttl=%ss)", settings.data_cache_ttl_seconds)

    purge_task = None
    if settings.session_ttl_seconds > 0:
        purge_task = asyncio.create_task(_purge_loop(app, settings.session_ttl_seconds))

    yield

    if purge_task is not None:
        purge_task.cancel()
    app.state.slot_store.close()
    app.state.user_store.close()
    logger.info("gatekeep shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="gatekeep",
    description="Registration, session login and a TTL-cached data endpoint.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. Only method, path, status, latency and client host are logged --
# never bodies or cookies.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(data_router, tags=["Data"])
# Web UI router is mounted by asgi.py, not here.


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render an AuthError with its own status and client-safe message.

    5xx auth errors (HashingError) are logged with their chained cause; the
    response carries only the generic message.
    """
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc_info=exc.__cause__ or exc,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(
            exclude_none=True
        ),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for routing failures (404, 405) and other HTTP exceptions.

    Registered on Starlette's base class so router-raised errors are caught
    as well as FastAPI's subclass.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(exclude_none=True),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    The client receives only a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(exclude_none=True),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state.
# ---------------------------------------------------------------------------


@app.get("/health", include_in_schema=True, tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=__version__)
