"""
Guidebook — Request ID Middleware
==================================

What:  Assigns a correlation ID to each incoming request and adds it to the response.
Why:   Every log line and error body of one request carries the same ID.
How:   Reuses the inbound X-Request-ID header or generates a short UUID; stores it
       in a ContextVar (for loggers and exception handlers) and request.state
       (for route handlers).
When:  Outermost middleware, so even short-circuited responses carry the ID.
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from guidebook.exceptions import InternalError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local: concurrent requests on one thread each see their own value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDLogFilter(logging.Filter):
    """Adds `request_id` to every log record ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("") or "-"
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that assigns a unique ID to each request for tracing.

    Behavior:
        1. Client sent X-Request-ID → use it (end-to-end tracing)
        2. Otherwise → first 8 chars of a UUID4
        3. Store in ContextVar and request.state
        4. Echo in the response headers
        5. Unhandled exception → log it and answer 500 with the standard body,
           while the ID is still set (an outer handler would see it reset)
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            error = InternalError()
            response = JSONResponse(
                status_code=error.status_code,
                content=error.to_payload(rid),
            )
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
