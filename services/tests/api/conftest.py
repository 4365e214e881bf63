"""
Shared fixtures for API tests.
"""

from unittest.mock import AsyncMock

import pytest

from charityshelter.api.app import create_application
from charityshelter.api.dependencies import AuthenticatedUser, get_current_user
from charityshelter.kv import get_role_store, get_user_store
from charityshelter.redis.client import get_redis


def make_user(*roles: str, user_id: str = "u-test") -> AuthenticatedUser:
    return AuthenticatedUser(
        user_id=user_id,
        email=f"{user_id}@charityshelter.org",
        roles=list(roles),
        auth_method="api_key",
    )


@pytest.fixture
def redis_mock() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def make_app(role_store, user_store, redis_mock):
    """Build an app whose stores are in-memory and, optionally, whose caller is fixed."""

    def _make(user: AuthenticatedUser | None = None):
        app = create_application()

        if user is not None:

            async def override_auth():
                return user

            app.dependency_overrides[get_current_user] = override_auth

        async def override_redis():
            yield redis_mock

        app.dependency_overrides[get_redis] = override_redis
        app.dependency_overrides[get_role_store] = lambda: role_store
        app.dependency_overrides[get_user_store] = lambda: user_store
        return app

    return _make


@pytest.fixture
def superadmin() -> AuthenticatedUser:
    return make_user("SuperAdmin", user_id="root")


@pytest.fixture
def guest() -> AuthenticatedUser:
    return make_user("Guest", user_id="visitor")


@pytest.fixture
def booking_manager() -> AuthenticatedUser:
    return make_user("BookingManager", user_id="bookings")


@pytest.fixture
def make_caller():
    return make_user
