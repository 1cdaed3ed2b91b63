"""
Wayfarer Backend - Health Check Route
=======================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Pings each backend the app.state clients point at.

Status levels:
    healthy:   PostgreSQL, MongoDB and Redis all reachable (HTTP 200)
    degraded:  Redis down; reads fall through to PostgreSQL (HTTP 200)
    unhealthy: PostgreSQL or MongoDB down (HTTP 503)
"""

import logging
import time
from typing import Literal

from fastapi import APIRouter, Request, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from wayfarer import __version__
from wayfarer.schemas.common import CamelModel

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


class HealthResponse(CamelModel):
    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    database: Literal["connected", "disconnected"]
    documents: Literal["connected", "disconnected"]
    cache: Literal["connected", "disconnected"]
    weather: Literal["enabled", "disabled", "circuit_open"]
    uptime_seconds: float


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"model": HealthResponse}},
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    state = request.app.state
    overall = "healthy"

    db_status = "connected"
    try:
        async with state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    documents_status = "connected" if await state.documents.ping() else "disconnected"
    if documents_status == "disconnected":
        overall = "unhealthy"

    cache_status = "connected" if await state.spot_cache.ping() else "disconnected"
    if cache_status == "disconnected" and overall == "healthy":
        overall = "degraded"

    weather = state.weather
    if not weather.enabled:
        weather_status = "disabled"
    elif weather.circuit_breaker.state == "open":
        weather_status = "circuit_open"
    else:
        weather_status = "enabled"

    if overall == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        documents=documents_status,
        cache=cache_status,
        weather=weather_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
