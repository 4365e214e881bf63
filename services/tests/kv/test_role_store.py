"""Tests for the Redis-backed role store."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import WatchError

from charityshelter.auth.permissions import AccessLevel, Permission, ResourceType, Role
from charityshelter.kv.keys import role_key
from charityshelter.kv.protocol import ConcurrentUpdateError, RoleStore
from charityshelter.kv.roles import RedisRoleStore

VOLUNTEER = Role(
    name="Volunteer",
    description="Helps with bookings",
    permissions=[Permission(ResourceType.BOOKINGS, AccessLevel.READ_ONLY)],
)


def _scan(keys):
    async def scan_iter(**kwargs):
        for k in keys:
            yield k

    return scan_iter


def _pipeline(redis: AsyncMock, pipe: MagicMock) -> None:
    ctx = MagicMock()
    ctx.__aenter__.return_value = pipe
    ctx.__aexit__.return_value = False
    redis.pipeline = MagicMock(return_value=ctx)


def _pipe(stored: Role | None) -> MagicMock:
    pipe = MagicMock()
    pipe.watch = AsyncMock()
    pipe.unwatch = AsyncMock()
    pipe.get = AsyncMock(return_value=json.dumps(stored.to_dict()) if stored else None)
    pipe.execute = AsyncMock(return_value=[True])
    return pipe


class TestRedisRoleStore:
    def test_satisfies_protocol(self):
        assert isinstance(RedisRoleStore(AsyncMock()), RoleStore)

    async def test_get_decodes_record(self):
        redis = AsyncMock()
        redis.get.return_value = json.dumps(VOLUNTEER.to_dict())

        role = await RedisRoleStore(redis).get("Volunteer")

        redis.get.assert_called_once_with(role_key("Volunteer"))
        assert role == VOLUNTEER

    async def test_get_missing(self):
        redis = AsyncMock()
        redis.get.return_value = None

        assert await RedisRoleStore(redis).get("Ghost") is None

    async def test_put_writes_json(self):
        redis = AsyncMock()

        await RedisRoleStore(redis).put(VOLUNTEER)

        key, value = redis.set.call_args[0]
        assert key == role_key("Volunteer")
        assert json.loads(value) == {
            "name": "Volunteer",
            "description": "Helps with bookings",
            "permissions": [{"resource": "bookings", "accessLevel": "read_only"}],
            "isSystemRole": False,
        }

    async def test_create_uses_set_nx(self):
        redis = AsyncMock()
        redis.set.return_value = True

        assert await RedisRoleStore(redis).create(VOLUNTEER) is True
        assert redis.set.call_args[1] == {"nx": True}

    async def test_create_existing_returns_false(self):
        redis = AsyncMock()
        redis.set.return_value = None

        assert await RedisRoleStore(redis).create(VOLUNTEER) is False

    async def test_delete(self):
        redis = AsyncMock()
        redis.delete.return_value = 1

        assert await RedisRoleStore(redis).delete("Volunteer") is True
        redis.delete.assert_called_once_with(role_key("Volunteer"))

    async def test_delete_missing(self):
        redis = AsyncMock()
        redis.delete.return_value = 0

        assert await RedisRoleStore(redis).delete("Ghost") is False

    async def test_list_all_sorted_and_skips_vanished(self):
        redis = AsyncMock()
        keys = [role_key("Zeta"), role_key("Gone"), role_key("Alpha")]
        redis.scan_iter = _scan(keys)
        redis.mget.return_value = [
            json.dumps(Role(name="Zeta").to_dict()),
            None,
            json.dumps(Role(name="Alpha").to_dict()),
        ]

        roles = await RedisRoleStore(redis).list_all()

        assert [r.name for r in roles] == ["Alpha", "Zeta"]
        redis.mget.assert_called_once_with(keys)

    async def test_list_all_empty(self):
        redis = AsyncMock()
        redis.scan_iter = _scan([])

        assert await RedisRoleStore(redis).list_all() == []
        redis.mget.assert_not_called()

    async def test_is_empty(self):
        redis = AsyncMock()
        redis.scan_iter = _scan([])
        assert await RedisRoleStore(redis).is_empty() is True

        redis.scan_iter = _scan([role_key("Guest")])
        assert await RedisRoleStore(redis).is_empty() is False


class TestRedisRoleStoreUpdate:
    async def test_update_writes_inside_transaction(self):
        redis = AsyncMock()
        pipe = _pipe(VOLUNTEER)
        _pipeline(redis, pipe)

        updated = await RedisRoleStore(redis).update("Volunteer", {"description": "Books rooms"})

        assert updated.description == "Books rooms"
        assert updated.permissions == VOLUNTEER.permissions
        pipe.watch.assert_called_once_with(role_key("Volunteer"))
        pipe.multi.assert_called_once()
        stored = json.loads(pipe.set.call_args[0][1])
        assert stored["description"] == "Books rooms"

    async def test_update_missing_returns_none(self):
        redis = AsyncMock()
        pipe = _pipe(None)
        _pipeline(redis, pipe)

        assert await RedisRoleStore(redis).update("Ghost", {"description": "x"}) is None
        pipe.unwatch.assert_called_once()
        pipe.set.assert_not_called()

    async def test_update_retries_after_concurrent_write(self):
        redis = AsyncMock()
        pipe = _pipe(VOLUNTEER)
        pipe.execute.side_effect = [WatchError(), [True]]
        _pipeline(redis, pipe)

        updated = await RedisRoleStore(redis).update("Volunteer", {"description": "Second try"})

        assert updated.description == "Second try"
        assert pipe.execute.call_count == 2

    async def test_update_gives_up_after_retries(self):
        redis = AsyncMock()
        pipe = _pipe(VOLUNTEER)
        pipe.execute.side_effect = WatchError()
        _pipeline(redis, pipe)

        with pytest.raises(ConcurrentUpdateError):
            await RedisRoleStore(redis, update_retries=2).update("Volunteer", {"description": "x"})

        assert pipe.execute.call_count == 2

    async def test_update_rejects_identity_fields(self):
        with pytest.raises(ValueError, match="Cannot update role fields"):
            await RedisRoleStore(AsyncMock()).update("Volunteer", {"is_system_role": True})
