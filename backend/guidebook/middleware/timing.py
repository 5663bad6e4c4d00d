"""
Guidebook — Timing Middleware
==============================

What:  Adds an `X-Process-Time` header (milliseconds, two decimals) to every response.
Why:   Lets clients and load tests see server-side latency without log access.
How:   perf_counter around the downstream call; a WARNING is logged when the
       duration exceeds SLOW_REQUEST_MS.
"""

import logging
import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from guidebook.config import settings

logger = logging.getLogger(__name__)

PROCESS_TIME_HEADER = "X-Process-Time"


class TimingMiddleware(BaseHTTPMiddleware):
    """
    Measures handler time and reports it in a response header.

    Args:
        slow_request_ms: Threshold for the slow-request warning
                         (defaults to settings.slow_request_ms)
    """

    def __init__(self, app, slow_request_ms: Optional[float] = None, **kwargs):
        super().__init__(app, **kwargs)
        self.slow_request_ms = (
            slow_request_ms if slow_request_ms is not None else settings.slow_request_ms
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        response.headers[PROCESS_TIME_HEADER] = f"{duration_ms:.2f}"

        if duration_ms > self.slow_request_ms:
            logger.warning(
                "Slow request: %s %s took %.1fms (threshold %.0fms)",
                request.method,
                request.url.path,
                duration_ms,
                self.slow_request_ms,
            )
        return response
