"""Prometheus metrics instrumentation for application monitoring."""

from prometheus_fastapi_instrumentator import Instrumentator
from fastapi import FastAPI

from .config import settings


def setup_monitoring(app: FastAPI) -> None:
    """Expose /metrics when ENABLE_METRICS is true (env var or .env file)."""
    if not settings.ENABLE_METRICS:
        return

    instrumentator = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        excluded_handlers=["/metrics", "/static/.*", "/favicon.ico"],
    )

    instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
