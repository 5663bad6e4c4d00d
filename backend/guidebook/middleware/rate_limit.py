"""
Guidebook — Rate Limiting Middleware
=====================================

What:  Per-IP sliding window rate limiter.
Why:   Keeps a single client from monopolizing the service.
How:   Tracks request timestamps per IP in memory.

Algorithm: Sliding Window Log
    1. Each IP gets a deque of request timestamps
    2. On each request, drop timestamps older than the window
    3. If remaining count >= limit, reject with 429
    4. Otherwise, record the current timestamp and allow through

    A fixed window lets a client burst 2x the limit across a boundary;
    the sliding window always counts the last N seconds.

Scope:
    In-memory state is per process. Multi-worker deployments need a shared
    store (Redis) instead.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from guidebook.config import settings
from guidebook.exceptions import RateLimitExceededError
from guidebook.middleware.logging import client_ip
from guidebook.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# Forget idle IPs every this many recorded requests
CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Args:
        max_requests:   Requests allowed per window (defaults to settings.rate_limit_requests)
        window_seconds: Window length (defaults to settings.rate_limit_window)
        clock:          Time source, injectable for tests

    Response on rate limit:
        HTTP 429, Retry-After = seconds until the oldest request leaves the window
    """

    # Health checks and API docs are always reachable
    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        **kwargs,
    ):
        super().__init__(app, **kwargs)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._clock = clock
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._recorded = 0

    def check(self, ip: str) -> Optional[int]:
        """
        Record a request for `ip`.

        Returns None when allowed, or the Retry-After seconds when the
        window is full (the rejected request is not recorded).
        """
        now = self._clock()
        window_start = now - self.window_seconds
        timestamps = self._requests[ip]

        while timestamps and timestamps[0] <= window_start:
            timestamps.popleft()

        if len(timestamps) >= self.max_requests:
            return int(timestamps[0] + self.window_seconds - now) + 1

        timestamps.append(now)
        self._recorded += 1
        if self._recorded % CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)
        return None

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        ip = client_ip(request)
        retry_after = self.check(ip)
        if retry_after is None:
            return await call_next(request)

        logger.warning(
            "Rate limit exceeded for IP %s: %d requests in %ds window",
            ip,
            self.max_requests,
            self.window_seconds,
        )
        error = RateLimitExceededError(retry_after=retry_after)
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_payload(request_id_var.get("")),
            headers={"Retry-After": str(retry_after)},
        )

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Remove IPs that have no requests within the current window."""
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
