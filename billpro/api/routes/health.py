"""
Health check endpoints.
"""

import time

import aiosqlite
from fastapi import APIRouter, Depends

from billpro.api.dependencies import get_app_settings
from billpro.application.dto.responses import ComponentHealthResponse, HealthResponse
from billpro.config import Settings
from billpro.core.exceptions import StoreUnavailableError

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Basic health check.

    Returns service status and uptime.
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        uptime_seconds=time.time() - _start_time,
    )


@router.get("/db", response_model=HealthResponse)
async def db_health(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Database health check.

    Tests SQLite connectivity and response time.
    """
    from billpro.infrastructure.storage.sqlite import get_pool

    try:
        pool = await get_pool()
        db_status = ComponentHealthResponse(
            name="sqlite",
            available=True,
            latency_ms=await pool.ping(),
        )
    except (StoreUnavailableError, aiosqlite.Error) as e:
        db_status = ComponentHealthResponse(name="sqlite", available=False, error=str(e))

    return HealthResponse(
        status="healthy" if db_status.available else "degraded",
        version=settings.app_version,
        uptime_seconds=time.time() - _start_time,
        database=db_status,
    )
