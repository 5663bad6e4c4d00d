"""
Guidebook — Maintenance Mode Middleware
========================================

What:  Answers every request with 503 while MAINTENANCE_MODE is on.
Why:   Lets operators take the API offline (migrations, reindexing) while
       health probes keep reporting the process as alive.
How:   Terminates the request before routing; never calls the handler.
       /health stays reachable and reports `maintenance: true`.
"""

import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from guidebook.config import settings
from guidebook.exceptions import ServiceUnavailableError
from guidebook.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

EXEMPT_PATHS = {"/health"}


class MaintenanceMiddleware(BaseHTTPMiddleware):
    """
    Args:
        enabled:     Overrides settings.maintenance_mode
        retry_after: Overrides settings.maintenance_retry_after (seconds)
    """

    def __init__(
        self,
        app,
        enabled: Optional[bool] = None,
        retry_after: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(app, **kwargs)
        self.enabled = settings.maintenance_mode if enabled is None else enabled
        self.retry_after = (
            settings.maintenance_retry_after if retry_after is None else retry_after
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # /health reports the state this instance enforces
        request.state.maintenance = self.enabled
        if not self.enabled or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        logger.info("Maintenance mode: rejected %s %s", request.method, request.url.path)
        error = ServiceUnavailableError(retry_after=self.retry_after)
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_payload(request_id_var.get("")),
            headers={"Retry-After": str(self.retry_after)},
        )
