"""
Blogstack Backend — Health Check Route
=========================================

What:  GET /health for container probes and load balancers.
How:   Runs SELECT 1 against the database and asks the storage backend
       for its own cheap probe (directory writable / head_bucket / ping).

Status levels:
    healthy:    database and storage reachable         (HTTP 200)
    degraded:   storage unreachable, reads still work  (HTTP 200)
    unhealthy:  database unreachable                   (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response

from app import __version__
from app.config import settings
from app.database import ping
from app.schemas.blog import HealthResponse
from app.services.file_service import file_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
    description="Reports database and image storage reachability plus uptime.",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    storage_status = "available"
    overall = "healthy"

    # ── Database ──────────────────────────────────────────────────────────
    try:
        await ping()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Storage ───────────────────────────────────────────────────────────
    try:
        available = await file_service.backend.health_check()
    except Exception as e:
        available = False
        logger.warning("Health check: storage backend failed: %s", str(e))
    if not available:
        storage_status = "unavailable"
        if overall == "healthy":
            overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        storage_backend=settings.storage_backend,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
