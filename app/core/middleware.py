"""Middleware for request logging."""

import logging
import time
import uuid
from typing import Optional, Callable
from contextvars import ContextVar

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Probe and scrape endpoints hit every few seconds
QUIET_PATHS = frozenset({"/health", "/health/ready", "/metrics"})

request_id_context: ContextVar[Optional[str]] = ContextVar("request_id_context", default=None)


def get_current_request_id() -> Optional[str]:
    """Get current request correlation ID from context."""
    return request_id_context.get()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each report request with a correlation ID.

    The dashboard may send its own ``X-Correlation-ID``; it is reused so one
    page load can be traced across its panel requests. Otherwise a fresh ID is
    generated. Either way it is echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        token = request_id_context.set(correlation_id)
        log = logger.debug if request.url.path in QUIET_PATHS else logger.info
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"

        start_time = time.time()
        log(f"Request started: method={request.method} target={target} correlation_id={correlation_id}")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: method={request.method} target={target} "
                f"duration_ms={duration_ms:.2f} correlation_id={correlation_id} error={e}",
                exc_info=True
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Internal server error"},
                headers={CORRELATION_HEADER: correlation_id}
            )
        finally:
            request_id_context.reset(token)

        duration_ms = (time.time() - start_time) * 1000
        log(
            f"Request completed: method={request.method} target={target} "
            f"status={response.status_code} duration_ms={duration_ms:.2f} correlation_id={correlation_id}"
        )
        response.headers.setdefault(CORRELATION_HEADER, correlation_id)
        return response
