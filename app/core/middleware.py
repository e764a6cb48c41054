"""
Request correlation and timing.

The client may send its own X-Correlation-ID (the mobile app does, so a
user report can be matched with server logs); otherwise one is minted.
The id is bound to the logging context for the lifetime of the request.
"""
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from app.core.logging import clear_correlation_id, get_logger, set_correlation_id

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
TIMING_HEADER = "X-Response-Time-Ms"

# Paths polled by load balancers; not worth a log line each
_UNLOGGED_PATHS = frozenset({"/health"})


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Stamp each response with its correlation id and elapsed milliseconds."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        request.state.correlation_id = correlation_id
        token = set_correlation_id(correlation_id)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id(token)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)

        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers[TIMING_HEADER] = str(elapsed_ms)

        if request.url.path not in _UNLOGGED_PATHS:
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={"correlation_id": correlation_id, "status": response.status_code, "elapsed_ms": elapsed_ms},
            )
        return response
