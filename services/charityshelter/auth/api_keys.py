"""API key management.

API keys are long-lived credentials stored in Redis as SHA-256 hashes.
The raw key value is only available at creation time. Lookup is by hash
on every request.

Key format: {random_id}.cs.{random_secret}
"""

import hashlib
import json
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import redis.asyncio as aioredis

from charityshelter.config import settings
from charityshelter.kv.keys import api_key_key
from charityshelter.logging_config import get_logger

logger = get_logger(__name__)

# Minimum interval between lastUsed updates (seconds).
# Avoids a Redis write on every single API request.
LAST_USED_UPDATE_INTERVAL = 60


@dataclass
class ApiKey:
    """Stored API key metadata. The raw key is never persisted."""

    user_id: str
    description: str
    created_at: str  # ISO 8601
    last_used: str | None = None

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "description": self.description,
            "createdAt": self.created_at,
            "lastUsed": self.last_used,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ApiKey":
        return cls(
            user_id=data["userId"],
            description=data.get("description", ""),
            created_at=data["createdAt"],
            last_used=data.get("lastUsed"),
        )


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _generate_raw_key() -> str:
    """Generate a raw key in the format '{random_id}.cs.{random_secret}'."""
    random_id = secrets.token_urlsafe(12)
    random_secret = secrets.token_urlsafe(32)
    return f"{random_id}.cs.{random_secret}"


def hash_key(raw_key: str) -> str:
    """SHA-256 hash a raw key for storage."""
    return hashlib.sha256(raw_key.encode()).hexdigest()


async def create_api_key(
    redis: aioredis.Redis,
    user_id: str,
    description: str = "",
) -> tuple[ApiKey, str]:
    """Create an API key. Returns (metadata, raw_key_value)."""
    raw_key = _generate_raw_key()
    api_key = ApiKey(
        user_id=user_id,
        description=description,
        created_at=_utc_now().isoformat(),
    )
    await redis.set(api_key_key(hash_key(raw_key)), json.dumps(api_key.to_dict()))

    logger.info("API key created", user_id=user_id)
    return api_key, raw_key


async def validate_api_key(redis: aioredis.Redis, raw_key: str) -> ApiKey | None:
    """Validate a raw key against the store.

    Hash the key, look up by hash, check expiry, and refresh ``lastUsed``
    (rate-limited to once per minute).
    """
    key = api_key_key(hash_key(raw_key))
    raw = await redis.get(key)
    if raw is None:
        return None

    api_key = ApiKey.from_dict(json.loads(raw))
    now = _utc_now()

    max_ttl = settings.auth.api_key_max_ttl_hours
    if max_ttl > 0:
        expiry = datetime.fromisoformat(api_key.created_at) + timedelta(hours=max_ttl)
        if now > expiry:
            logger.debug("API key expired (max TTL)", user_id=api_key.user_id)
            return None

    should_update = (
        api_key.last_used is None
        or (now - datetime.fromisoformat(api_key.last_used)).total_seconds()
        > LAST_USED_UPDATE_INTERVAL
    )
    if should_update:
        api_key.last_used = now.isoformat()
        await redis.set(key, json.dumps(api_key.to_dict()), keepttl=True)

    return api_key


async def revoke_api_key(redis: aioredis.Redis, raw_key: str) -> bool:
    """Revoke (delete) an API key.

    Returns True if the key existed, False if not found.
    """
    deleted = await redis.delete(api_key_key(hash_key(raw_key)))
    if deleted:
        logger.info("API key revoked")
    return deleted > 0
