"""Health check endpoints for the Cryptofolio API."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from .. import __version__
from ..config.logging import get_logger
from ..ormdb.database import check_database_health
from ..services.market import PriceFeed
from .dependencies import get_db_session_factory, get_feed
from .models.responses import HealthResponse, HealthStatus

logger = get_logger(__name__)
router = APIRouter()

# Track application start time for uptime calculation
_app_start_time = time.time()


def check_price_feed_health(feed: PriceFeed) -> dict:
    """Summarize price feed freshness as a service status."""
    status = feed.status()
    if status["quote_count"] == 0:
        status["status"] = "unhealthy"
    elif status["is_stale"] or status["error"]:
        status["status"] = "degraded"
    else:
        status["status"] = "healthy"
    return status


@router.get("/health", response_model=HealthResponse, summary="Basic Health Check")
async def basic_health_check(
    feed: PriceFeed = Depends(get_feed),
    session_factory=Depends(get_db_session_factory),
):
    """
    Perform a basic health check.

    Reports database connectivity and price feed freshness. A stale feed
    degrades the status; a database failure makes it unhealthy.
    """
    uptime_seconds = time.time() - _app_start_time

    services = {
        "database": check_database_health(session_factory),
        "price_feed": check_price_feed_health(feed),
    }

    statuses = [s["status"] for s in services.values()]
    if services["database"]["status"] != "healthy":
        overall_status = "unhealthy"
    elif "unhealthy" in statuses or "degraded" in statuses:
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    health_status = HealthStatus(
        status=overall_status,
        services=services,
        uptime_seconds=uptime_seconds,
        version=__version__,
    )

    logger.debug("Basic health check completed", status=overall_status)
    return HealthResponse(success=True, health=health_status)


@router.get("/health/live", summary="Liveness Probe")
async def liveness_probe():
    """
    Liveness probe endpoint.

    Returns 200 if the application is running and can serve requests.
    """
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": time.time() - _app_start_time,
    }
