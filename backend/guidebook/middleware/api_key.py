"""
Guidebook — API Key Middleware
===============================

What:  Requires a valid X-API-Key header for unsafe methods under /api.
Why:   Reads are public; creating and deleting guides is not.
How:   POST / PUT / PATCH / DELETE requests whose path starts with /api are
       answered with 401 unless the header matches one of the configured
       keys. Safe methods (GET, HEAD, OPTIONS) pass through untouched, so
       CORS preflight keeps working.

Keys are compared with hmac.compare_digest.
"""

import hmac
import logging
from typing import Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from guidebook.config import settings
from guidebook.exceptions import AuthenticationError
from guidebook.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"
PROTECTED_PREFIX = "/api"
UNSAFE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """
    Args:
        api_keys: Accepted keys (defaults to settings.api_keys_set).
                  An empty collection rejects every protected request.
    """

    def __init__(self, app, api_keys: Optional[Iterable[str]] = None, **kwargs):
        super().__init__(app, **kwargs)
        self.api_keys = frozenset(api_keys) if api_keys is not None else settings.api_keys_set

    def is_protected(self, request: Request) -> bool:
        path = request.url.path
        under_prefix = path == PROTECTED_PREFIX or path.startswith(PROTECTED_PREFIX + "/")
        return under_prefix and request.method in UNSAFE_METHODS

    def is_valid(self, key: str) -> bool:
        return any(hmac.compare_digest(key.encode(), known.encode()) for known in self.api_keys)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not self.is_protected(request):
            return await call_next(request)

        key = request.headers.get(API_KEY_HEADER, "")
        if key and self.is_valid(key):
            return await call_next(request)

        logger.warning(
            "Rejected %s %s: %s",
            request.method,
            request.url.path,
            "invalid API key" if key else "missing API key",
        )
        error = AuthenticationError()
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_payload(request_id_var.get("")),
            headers={"WWW-Authenticate": API_KEY_HEADER},
        )
