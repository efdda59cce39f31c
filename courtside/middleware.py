"""HTTP middleware for request handling, logging, and security."""

from fastapi import Request
import time
import uuid
from .config import settings
from .logger import logger


# ==================== Request ID Middleware ====================

async def add_request_id_middleware(request: Request, call_next):
    """Add unique request ID to each request for tracing across logs."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


# ==================== Request Logging Middleware ====================

async def request_logging_middleware(request: Request, call_next):
    """Log all incoming requests and their response times."""
    start_time = time.time()
    request_id = getattr(request.state, "request_id", "unknown")

    try:
        response = await call_next(request)
    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"[{request_id}] {request.method} {request.url.path} - "
            f"Error: {str(e)} - "
            f"Duration: {duration:.3f}s",
            exc_info=True
        )
        raise

    duration = time.time() - start_time
    logger.info(
        f"[{request_id}] {request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Duration: {duration:.3f}s"
    )
    return response


# ==================== Security Headers Middleware ====================

async def security_headers_middleware(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    # Pages load htmx from unpkg; everything else is same-origin
    response.headers["Content-Security-Policy"] = (
        "default-src 'self'; "
        "script-src 'self' https://unpkg.com; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data:; "
        "form-action 'self'"
    )

    response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

    return response
