"""Redis-backed user store.

User records are JSON strings under ``user_key(id)``. Only the fields the
authorization layer needs are modelled; everything else round-trips
untouched through ``UserRecord.extra``.
"""

import json

import redis.asyncio as aioredis
from redis.exceptions import WatchError

from charityshelter.kv.keys import user_key, users_prefix
from charityshelter.kv.protocol import ConcurrentUpdateError, UserRecord
from charityshelter.logging_config import get_logger

logger = get_logger(__name__)


class RedisUserStore:
    """UserStore implementation on top of redis.asyncio."""

    def __init__(self, redis: aioredis.Redis, update_retries: int = 3) -> None:
        self._redis = redis
        self._update_retries = update_retries

    async def get_by_id(self, user_id: str) -> UserRecord | None:
        raw = await self._redis.get(user_key(user_id))
        if raw is None:
            return None
        return UserRecord.from_dict(json.loads(raw))

    async def find_by_email(self, email: str) -> UserRecord | None:
        async for key in self._redis.scan_iter(match=f"{users_prefix()}*", count=100):
            raw = await self._redis.get(key)
            if raw is None:
                continue
            data = json.loads(raw)
            if data.get("email") == email:
                return UserRecord.from_dict(data)
        return None

    async def put(self, user: UserRecord) -> None:
        await self._redis.set(user_key(user.id), json.dumps(user.to_dict()))

    async def set_roles(self, user_id: str, roles: list[str]) -> UserRecord | None:
        """Replace a user's role names, dropping any legacy single ``role`` field."""
        key = user_key(user_id)
        for attempt in range(1, self._update_retries + 1):
            async with self._redis.pipeline(transaction=True) as pipe:
                try:
                    await pipe.watch(key)
                    raw = await pipe.get(key)
                    if raw is None:
                        await pipe.unwatch()
                        return None

                    user = UserRecord.from_dict(json.loads(raw))
                    user.roles = list(roles)
                    pipe.multi()
                    pipe.set(key, json.dumps(user.to_dict()))
                    await pipe.execute()

                    logger.info("User roles updated", user_id=user_id, roles=user.roles)
                    return user
                except WatchError:
                    logger.debug("User changed during update, retrying", user_id=user_id, attempt=attempt)

        raise ConcurrentUpdateError(key)
