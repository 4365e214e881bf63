"""
Shared Redis connection for the Charity Shelter key-value store.

Every persisted record lives in Redis: user records with their role
names, custom and seeded role definitions, and hashed API keys. The API
process opens one client at startup and the role/user stores borrow it
per request.
"""

from collections.abc import AsyncGenerator

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from charityshelter.config import settings
from charityshelter.logging_config import get_logger

logger = get_logger(__name__)

_redis: aioredis.Redis | None = None


async def init_redis() -> None:
    """Open the client and fail startup if the store is unreachable."""
    global _redis  # noqa: PLW0603
    logger.info("Connecting to key-value store", prefix=settings.kv_prefix)
    _redis = aioredis.from_url(str(settings.redis_url), decode_responses=True)
    await _redis.ping()
    logger.info("Key-value store connected")


async def close_redis() -> None:
    global _redis  # noqa: PLW0603
    if _redis is None:
        return
    logger.info("Closing key-value store connection")
    await _redis.aclose()
    _redis = None


def get_redis_client() -> aioredis.Redis:
    """Return the shared client; the stores and the bootstrap path use this."""
    if _redis is None:
        raise RuntimeError("Key-value store not connected, call init_redis() first")
    return _redis


async def get_redis() -> AsyncGenerator[aioredis.Redis]:
    """FastAPI dependency yielding the shared client (API key lookups)."""
    yield get_redis_client()


async def get_redis_health() -> bool:
    """True when the store answers PING."""
    if _redis is None:
        return False
    try:
        await _redis.ping()
    except (RedisError, OSError) as e:
        logger.error("Key-value store ping failed", error=str(e))
        return False
    return True
