"""
api/main.py -- FastAPI application factory for Chirpy.

Run with:      uvicorn asgi:app --reload

create_app(settings) builds a fully independent application: its own stores,
SessionManager and hit counter, all derived from the Settings passed in.
Nothing is read from module-level state, so tests build as many isolated
apps as they like.

Middleware (outermost to innermost):
  1. log_requests -- method, path, status, latency for every request
  2. count_hits   -- increments the fileserver hit counter under /app/

Lifespan handles startup (stores, SessionManager) and shutdown (dispose
engines) symmetrically.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.admin import router as admin_router
from api.routes.chirps import router as chirps_router
from api.routes.users import router as users_router
from api.routes.webhooks import router as webhooks_router
from auth.session import SessionManager
from auth.store import UserStore
from chirps.store import ChirpStore
from core.config import Settings, get_settings
from core.errors import AuthenticationFailure, ChirpyError
from core.metrics import HitCounter

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("chirpy.api")


def _error_json(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the Chirpy ASGI application.

    Args:
        settings: Configuration for this instance. Defaults to the process-wide
                  get_settings() singleton (environment + .env).
    """
    settings = settings or get_settings()

    # -----------------------------------------------------------------------
    # Lifespan
    # -----------------------------------------------------------------------

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Open stores and build the SessionManager; dispose engines on shutdown.

        SessionManager is built after UserStore because it persists refresh
        tokens through it.
        """
        logger.info("Chirpy API starting up (platform=%s)", settings.platform)
        app.state.user_store = UserStore(settings.db_url)
        app.state.chirp_store = ChirpStore(settings.db_url)
        app.state.sessions = SessionManager(settings, app.state.user_store)
        logger.info("Stores initialized")

        yield

        app.state.chirp_store.close()
        app.state.user_store.close()
        logger.info("Chirpy API shutdown complete")

    app = FastAPI(
        title="Chirpy API",
        description="Short posts, user accounts, and JWT/refresh-token sessions.",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.hits = HitCounter()

    # -----------------------------------------------------------------------
    # Middleware
    #
    # @app.middleware("http") wraps in reverse registration order: the last
    # one registered is outermost. count_hits is registered first so
    # log_requests sees every request, including fileserver hits.
    # -----------------------------------------------------------------------

    @app.middleware("http")
    async def count_hits(request: Request, call_next):
        if request.url.path == "/app" or request.url.path.startswith("/app/"):
            request.app.state.hits.increment()
        return await call_next(request)

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

    # -----------------------------------------------------------------------
    # Routers and static fileserver
    # -----------------------------------------------------------------------

    app.include_router(users_router, prefix="/api", tags=["Users"])
    app.include_router(chirps_router, prefix="/api", tags=["Chirps"])
    app.include_router(webhooks_router, prefix="/api", tags=["Webhooks"])
    app.include_router(admin_router, prefix="/admin", tags=["Admin"])

    @app.get("/api/healthz", tags=["Health"])
    async def healthz() -> HealthResponse:
        """Readiness probe. No auth, no DB access."""
        return HealthResponse()

    # check_dir=False defers the directory check to the first /app/ request.
    app.mount("/app", StaticFiles(directory=settings.static_dir, html=True, check_dir=False), name="app")

    # -----------------------------------------------------------------------
    # Exception handlers
    #
    # All handlers return the same ErrorResponse envelope so API clients can
    # parse errors uniformly without inspecting status codes to choose a schema.
    # -----------------------------------------------------------------------

    @app.exception_handler(ChirpyError)
    async def chirpy_error_handler(request: Request, exc: ChirpyError) -> JSONResponse:
        """Render a domain error. Messages are already client-safe."""
        response = _error_json(exc.status_code, exc.code, exc.message)
        if isinstance(exc, AuthenticationFailure):
            response.headers["WWW-Authenticate"] = "Bearer"
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Return 422 with structured error when request body or query params fail validation."""
        return _error_json(422, "validation_error", "Request validation failed.", str(exc.errors()))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Return a structured error for framework-raised HTTP errors (404 route, 405 method)."""
        return _error_json(exc.status_code, f"http_{exc.status_code}", str(exc.detail))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler for unexpected server errors.

        The raw exception is written to the log only, never to the response
        body. The client receives only a generic message.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error_json(500, "internal_error", "An unexpected error occurred.")

    return app
