"""
Health check endpoints.

Reports database reachability and the active pricing configuration.
"""

from fastapi import APIRouter, HTTPException
import structlog

from src.core.config import APP_VERSION, booking_config, settings
from src.persistence.database import check_database_health

log = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        Database status plus the pricing version new sessions are priced with.
    """
    db_health = await check_database_health()

    overall_status = "healthy" if db_health["status"] == "healthy" else "unhealthy"
    if overall_status != "healthy":
        log.warning("health_check_degraded", database=db_health)

    return {
        "status": overall_status,
        "version": APP_VERSION,
        "debug": settings.debug,
        "pricing_version": booking_config.pricing.version,
        "components": {"database": db_health},
    }


@router.get("/health/live")
async def liveness():
    """Liveness check: 200 while the process is serving."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness():
    """
    Readiness check.

    Returns 503 until the booking database answers queries.
    """
    db_health = await check_database_health()

    if db_health["status"] != "healthy":
        raise HTTPException(status_code=503, detail="Database not ready")

    return {"status": "ready"}
