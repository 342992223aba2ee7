"""
Observability middleware and logging setup.

Every request gets a correlation id (taken from ``X-Correlation-ID`` or
generated), echoed back in the response and attached to the request log
and to any server-error log written by the exception handlers.
"""

import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from bookkeeper.app.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CORRELATION_HEADER = "X-Correlation-ID"

logger = logging.getLogger("bookkeeper.http")


def configure_logging(level: str = None) -> None:
    """Configure the ``bookkeeper`` logger hierarchy once at startup."""
    root = logging.getLogger("bookkeeper")
    root.setLevel((level or settings.log_level).upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)


def correlation_id_of(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or "unknown"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers["X-Process-Time"] = str(duration_ms)

        log_data = {
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        }
        message = f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms} ms)"

        if response.status_code >= 500:
            logger.error(message, extra=log_data)
        elif response.status_code >= 400:
            logger.warning(message, extra=log_data)
        else:
            logger.info(message, extra=log_data)

        return response
