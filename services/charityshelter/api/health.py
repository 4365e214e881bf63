"""
Probes for the Charity Shelter API.

/health answers as long as the process serves requests. /ready also
requires the key-value store, since no role or API key can be resolved
without it.
"""

from fastapi import APIRouter, Response, status

from charityshelter.logging_config import get_logger
from charityshelter.redis.client import get_redis_health

router = APIRouter(tags=["health"])
logger = get_logger(__name__)


@router.get("/health", status_code=status.HTTP_200_OK)
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready", status_code=status.HTTP_200_OK)
async def ready(response: Response) -> dict[str, str | dict[str, str]]:
    """Report readiness per dependency; 503 when any is down."""
    checks = {"redis": "healthy" if await get_redis_health() else "unhealthy"}

    if "unhealthy" in checks.values():
        logger.warning("Not ready", checks=checks)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not ready", "checks": checks}

    return {"status": "ready", "checks": checks}
