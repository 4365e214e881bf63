"""
Key-value store layer for the Charity Shelter API.

Provides get_role_store() / get_user_store() as FastAPI dependencies,
both backed by the shared Redis client.
"""

from __future__ import annotations

from charityshelter.config import settings
from charityshelter.kv.protocol import RoleStore, UserStore
from charityshelter.kv.roles import RedisRoleStore
from charityshelter.kv.users import RedisUserStore
from charityshelter.redis.client import get_redis_client


def get_role_store() -> RoleStore:
    """FastAPI dependency returning the Redis-backed role store."""
    return RedisRoleStore(get_redis_client(), update_retries=settings.rbac.role_update_retries)


def get_user_store() -> UserStore:
    """FastAPI dependency returning the Redis-backed user store."""
    return RedisUserStore(get_redis_client(), update_retries=settings.rbac.role_update_retries)
