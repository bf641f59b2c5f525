"""
YelpCamp Backend - Health Check Route
=======================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 against the database and asks the geocoder whether it
       can take calls (token configured, circuit not open).

Status levels:
    healthy:   database and geocoder usable (HTTP 200)
    degraded:  database fine, geocoder unusable; pages still render but new
               or relocated campgrounds cannot be saved (HTTP 200)
    unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app import __version__
from app.database import engine
from app.dependencies import get_geocoder
from app.schemas.pages import HealthResponse
from app.services.geocoding_base import GeocodingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(geocoder: GeocodingService = Depends(get_geocoder)):
    db_status = "connected"
    geocoder_status = "available"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Geocoder ────────────────────────────────────────────────────
    if geocoder.circuit_state == "open":
        geocoder_status = "circuit_open"
    elif not await geocoder.health_check():
        geocoder_status = "not_configured"
    if geocoder_status != "available" and overall == "healthy":
        overall = "degraded"

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        geocoder=geocoder_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
