"""Tests for the caller permission introspection endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

ME_URL = "/api/v1/permissions/me"
CHECK_URL = "/api/v1/permissions/check"


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestMyPermissions:
    async def test_superadmin_full_everywhere(self, make_app, superadmin):
        async with _client(make_app(superadmin)) as client:
            response = await client.get(ME_URL)

        assert response.status_code == 200
        permissions = response.json()["data"]["attributes"]["permissions"]
        assert set(permissions.values()) == {"full"}
        assert len(permissions) == 7

    async def test_union_of_roles(self, make_app, make_caller):
        caller = make_caller("Guest", "BookingManager")
        async with _client(make_app(caller)) as client:
            response = await client.get(ME_URL)

        permissions = response.json()["data"]["attributes"]["permissions"]
        assert permissions["bookings"] == "full"
        assert permissions["posts"] == "read_only"
        assert permissions["users"] == "read_only"
        assert permissions["settings"] == "none"

    async def test_unknown_roles_reported(self, make_app, make_caller):
        caller = make_caller("Guest", "Wizard")
        async with _client(make_app(caller)) as client:
            response = await client.get(ME_URL)

        attrs = response.json()["data"]["attributes"]
        assert attrs["roles"] == ["Guest", "Wizard"]
        assert attrs["unknown-roles"] == ["Wizard"]

    async def test_no_roles(self, make_app, make_caller):
        async with _client(make_app(make_caller())) as client:
            response = await client.get(ME_URL)

        permissions = response.json()["data"]["attributes"]["permissions"]
        assert set(permissions.values()) == {"none"}

    async def test_requires_authentication(self, make_app):
        async with _client(make_app()) as client:
            response = await client.get(ME_URL)

        assert response.status_code == 401


class TestCheckPermission:
    @pytest.mark.parametrize(
        "role,resource,level,allowed",
        [
            ("Guest", "posts", "read_only", True),
            ("Guest", "posts", "read_write", False),
            ("Patron", "donations", "read_write", True),
            ("Patron", "users", "read_only", False),
            ("ContentManager", "posts", "full", True),
            ("SuperAdmin", "settings", "full", True),
        ],
    )
    async def test_check(self, make_app, make_caller, role, resource, level, allowed):
        async with _client(make_app(make_caller(role))) as client:
            response = await client.post(
                CHECK_URL, json={"resource": resource, "accessLevel": level}
            )

        assert response.status_code == 200
        assert response.json() == {
            "allowed": allowed,
            "required": {"resource": resource, "accessLevel": level},
        }

    async def test_invalid_access_level(self, make_app, guest):
        async with _client(make_app(guest)) as client:
            response = await client.post(
                CHECK_URL, json={"resource": "posts", "accessLevel": "admin"}
            )

        assert response.status_code == 422
        assert "none" in response.json()["detail"]["validAccessLevels"]

    async def test_missing_fields(self, make_app, guest):
        async with _client(make_app(guest)) as client:
            response = await client.post(CHECK_URL, json={})

        assert response.status_code == 422
