"""
Tulisin Backend — Health Check Route
=====================================

What:  GET /health for load balancers and container health checks.
How:   Round-trips `SELECT 1` through the pool and reports pool occupancy.
       The database is the only critical dependency: unreachable → 503.
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app import __version__
from app.exceptions import AppError
from app.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    settings = request.app.state.settings
    database = getattr(request.app.state, "database", None)

    db_status = "disconnected"
    pool = {}
    if database is not None and not database.is_closed:
        try:
            await database.test_connection()
            db_status = "connected"
        except AppError as e:
            logger.warning("Health check: database unreachable: %s", e.message)
        pool = database.pool_info()

    healthy = db_status == "connected"
    body = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=__version__,
        environment=settings.environment,
        database=db_status,
        pool=pool,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if healthy:
        return body
    return JSONResponse(status_code=503, content=body.model_dump(by_alias=True))
