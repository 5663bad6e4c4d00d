"""
Guidebook — Request Logging Middleware
=======================================

What:  One structured access-log line for every HTTP request.
How:   Measures wall time around the downstream call and logs method, path,
       status, duration, request ID and client IP.
When:  Directly inside RequestIDMiddleware, so the ID is already set and
       responses produced by the terminating middleware further in are logged too.

Level by status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO

Not logged: request bodies, query strings (may contain tokens), auth headers.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from guidebook.middleware.request_id import request_id_var

logger = logging.getLogger("guidebook.access")

# Probed every few seconds; logging them drowns everything else
SKIP_PATHS = {"/health"}


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs structured information about each HTTP request and response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SKIP_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        rid = request_id_var.get("")
        ip = client_ip(request)
        status = response.status_code

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            ip,
            extra={
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": ip,
            },
        )

        return response
