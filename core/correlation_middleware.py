"""
Correlation ID Middleware

Tags every request with a correlation id so the log lines of one games
request, or of one pipeline trigger and the run it starts, can be
grouped. The id is echoed back in the response headers.
"""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from core.logging import get_logger, set_correlation_id

log = get_logger("http")


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Reads X-Correlation-ID (or generates one), sets it in the logging
    context, logs the finished request, and echoes the id back.
    """

    HEADER_NAME = "X-Correlation-ID"

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())
        set_correlation_id(correlation_id)

        started = time.perf_counter()
        response = await call_next(request)

        log.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        response.headers[self.HEADER_NAME] = correlation_id
        return response
