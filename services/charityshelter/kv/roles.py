"""Redis-backed role store.

Each role is one JSON string under ``role_key(name)``. Writes are
serialized per role name: creation is an atomic SET NX, updates are a
WATCH/MULTI read-modify-write that retries when another writer touches
the same key, deletion is a single DEL.
"""

import json
from dataclasses import replace
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import WatchError

from charityshelter.auth.permissions import Role
from charityshelter.kv.keys import role_key, roles_prefix
from charityshelter.kv.protocol import ConcurrentUpdateError
from charityshelter.logging_config import get_logger

logger = get_logger(__name__)

UPDATABLE_FIELDS = frozenset({"description", "permissions"})


def _dump(role: Role) -> str:
    return json.dumps(role.to_dict())


class RedisRoleStore:
    """RoleStore implementation on top of redis.asyncio."""

    def __init__(self, redis: aioredis.Redis, update_retries: int = 3) -> None:
        self._redis = redis
        self._update_retries = update_retries

    async def list_all(self) -> list[Role]:
        keys = [key async for key in self._redis.scan_iter(match=f"{roles_prefix()}*", count=100)]
        if not keys:
            return []

        roles = []
        for raw in await self._redis.mget(keys):
            # Key may have expired or been deleted between SCAN and MGET
            if raw is None:
                continue
            roles.append(Role.from_dict(json.loads(raw)))

        roles.sort(key=lambda r: r.name)
        return roles

    async def get(self, name: str) -> Role | None:
        raw = await self._redis.get(role_key(name))
        if raw is None:
            return None
        return Role.from_dict(json.loads(raw))

    async def put(self, role: Role) -> None:
        await self._redis.set(role_key(role.name), _dump(role))

    async def create(self, role: Role) -> bool:
        created = await self._redis.set(role_key(role.name), _dump(role), nx=True)
        return bool(created)

    async def update(self, name: str, changes: dict[str, Any]) -> Role | None:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update role fields: {sorted(unknown)}")

        key = role_key(name)
        for attempt in range(1, self._update_retries + 1):
            async with self._redis.pipeline(transaction=True) as pipe:
                try:
                    await pipe.watch(key)
                    raw = await pipe.get(key)
                    if raw is None:
                        await pipe.unwatch()
                        return None

                    updated = replace(Role.from_dict(json.loads(raw)), **changes)
                    pipe.multi()
                    pipe.set(key, _dump(updated))
                    await pipe.execute()
                    return updated
                except WatchError:
                    logger.debug("Role changed during update, retrying", role=name, attempt=attempt)

        raise ConcurrentUpdateError(key)

    async def delete(self, name: str) -> bool:
        deleted = await self._redis.delete(role_key(name))
        return deleted > 0

    async def is_empty(self) -> bool:
        async for _ in self._redis.scan_iter(match=f"{roles_prefix()}*", count=100):
            return False
        return True
