"""
api/main.py -- FastAPI application entry point for UniDirectory.

Run with:  uvicorn asgi:app --reload
           python main.py serve

Middleware stack (outermost to innermost; Starlette puts the last-added
middleware outermost, so they are added in the reverse of this order):
  1. log_requests            -- one log line per request, 413s included
  2. BodySizeLimitMiddleware -- 413 for bodies over Settings.max_body_bytes,
                                declared or streamed (api/middleware.py)
  3. SlowAPIMiddleware       -- default limits; @limiter.limit routes enforce their own
  4. TrustedHostMiddleware   -- rejects requests with unexpected Host headers

Lifespan builds the stores and services once, parks them on app.state, and
disposes them at shutdown. Handlers reach them through request.app.state;
there is no module-level mutable state.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.middleware import BodySizeLimitMiddleware
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.directory import router as directory_router
from api.routes.profile import router as profile_router
from auth.credentials import CredentialStore
from auth.sessions import SessionManager
from auth.store import UserStore
from core.config import get_settings
from core.errors import AuthenticationFailure, DuplicateUsernameError, NotFound, StoreError, Unauthorized
from core.limiter import limiter
from directory.profiles import ProfileService
from directory.queries import DirectoryQueryService
from directory.store import ProgrammeStore

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("unidirectory.api")

settings = get_settings()

# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


def attach_services(app: FastAPI, db_url: str) -> None:
    """Build every store and service for db_url and attach them to app.state.

    Order matters: the Credential Store wraps the user repository, and the
    Session Manager re-fetches users through the Credential Store.
    """
    app.state.user_store = UserStore(db_url)
    app.state.programme_store = ProgrammeStore(db_url)
    app.state.credentials = CredentialStore(app.state.user_store, default_picture=settings.default_picture)
    app.state.sessions = SessionManager(db_url, app.state.credentials, settings.session_expire_seconds)
    app.state.profiles = ProfileService(app.state.user_store, app.state.credentials)
    app.state.directory = DirectoryQueryService(app.state.user_store, app.state.programme_store)


def close_services(app: FastAPI) -> None:
    app.state.sessions.close()
    app.state.programme_store.close()
    app.state.user_store.close()


# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI) -> None:
    """Delete expired sessions every 6 hours.

    CancelledError from task.cancel() during shutdown propagates out of
    asyncio.sleep and unwinds the coroutine cleanly.
    """
    while True:
        await asyncio.sleep(6 * 60 * 60)
        removed = await asyncio.to_thread(app.state.sessions.purge_expired)
        if removed:
            logger.info("Purged %d expired session(s)", removed)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores on startup and close them on shutdown."""
    logger.info("UniDirectory starting up")
    attach_services(app, settings.resolved_database_url)
    logger.info("Stores initialized (%d programme rows)", app.state.programme_store.count())
    app.state.purge_task = asyncio.create_task(_purge_loop(app))

    yield

    app.state.purge_task.cancel()
    close_services(app)
    logger.info("UniDirectory shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="UniDirectory",
    description="University member directory: profiles, programmes, and sessions.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter

app.add_middleware(BodySizeLimitMiddleware, settings=settings)


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

app.include_router(profile_router, prefix="/api", tags=["Profile"])
app.include_router(directory_router, prefix="/api", tags=["Directory"])
# Web UI router is mounted by asgi.py, not here.
# api/ and web/ are independent layers -- only the top-level asgi.py imports both.


# ---------------------------------------------------------------------------
# Exception handlers
#
# Domain errors map to fixed status codes. Everything JSON uses the
# ErrorResponse envelope; Unauthorized is the exception -- it answers in plain
# text so an anonymous caller never receives a JSON document at all.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(Unauthorized)
async def unauthorized_handler(request: Request, exc: Unauthorized) -> PlainTextResponse:
    return PlainTextResponse(str(exc), status_code=403)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    return _error(404, "not_found", "Not found.")


@app.exception_handler(DuplicateUsernameError)
async def duplicate_username_handler(request: Request, exc: DuplicateUsernameError) -> JSONResponse:
    return _error(409, "conflict", "A user with that username already exists.")


@app.exception_handler(AuthenticationFailure)
async def authentication_failure_handler(request: Request, exc: AuthenticationFailure) -> JSONResponse:
    return _error(401, "bad_credentials", str(exc))


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Persistence failures are not retried; the caller gets a generic 500."""
    logger.exception("Store failure on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(422, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged, never written to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return liveness and current version."""
    return HealthResponse(version=VERSION)
