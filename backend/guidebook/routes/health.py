"""
Guidebook — Health Check Route
===============================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 against the database and reports uptime and maintenance state.
When:  Periodically (e.g., every 30 seconds by Docker, every 10 seconds by LB).

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503, stop routing traffic)

Never rate limited and never blocked by maintenance mode.
"""

import logging
import time

from fastapi import APIRouter, Request, Response
from sqlalchemy import text

from guidebook import __version__
from guidebook import database
from guidebook.config import settings
from guidebook.schemas.guide import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        # Set by MaintenanceMiddleware; settings only when it is not installed
        maintenance=getattr(request.state, "maintenance", settings.maintenance_mode),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
