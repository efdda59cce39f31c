"""FastAPI application entry point with lifecycle management."""

from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .db import init_db
from .exceptions import CourtsideError, LoginRequired, MethodNotAllowedError, StorageError
from .logger import logger
from .middleware import (
    add_request_id_middleware,
    request_logging_middleware,
    security_headers_middleware,
)
from .monitoring import setup_monitoring
from .routes import limiter, router
from .sessions import create_session_store

STATIC_PATH = Path(__file__).parent / "static"

# ==================== Application Lifecycle ====================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open storage and the session store on startup; release them on shutdown.

    A storage initialisation failure propagates out of startup, which makes
    the server exit.
    """
    logger.info(f"Starting {settings.APP_NAME} in {settings.APP_ENV} mode")

    try:
        app.state.db = await init_db(settings.DB_URL, echo=settings.DB_ECHO)
    except StorageError as e:
        logger.critical(f"Failed to initialise storage at {settings.DB_URL}: {e}")
        raise

    app.state.sessions = create_session_store(settings)
    await app.state.sessions.connect()

    logger.info(f"{settings.APP_NAME} started successfully - ready to accept requests")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    await app.state.sessions.close()
    await app.state.db.dispose()
    logger.info(f"{settings.APP_NAME} shutdown complete")

# ==================== Error Handlers ====================


async def courtside_error_handler(request: Request, exc: CourtsideError):
    """Render application errors as plain text with their status code."""
    if isinstance(exc, LoginRequired):
        return RedirectResponse(url="/login", status_code=303)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return PlainTextResponse(exc.message, status_code=exc.status_code, headers=exc.headers)


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed path or form input is a 400, not FastAPI's default 422."""
    logger.warning(f"Malformed request to {request.method} {request.url.path}: {exc.errors()}")
    return PlainTextResponse("Invalid request", status_code=400)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Framework errors (unknown route, wrong verb) as plain text."""
    if exc.status_code == 405:
        return await courtside_error_handler(request, MethodNotAllowedError(headers=exc.headers))
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)

# ==================== Application Setup ====================


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    # Middleware registration (last registered = outermost layer)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(add_request_id_middleware)

    app.add_exception_handler(CourtsideError, courtside_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.mount("/static", StaticFiles(directory=STATIC_PATH), name="static")
    app.include_router(router)

    setup_monitoring(app)
    return app


app = create_app()


def run():
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "courtside.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
