"""
Top-level test configuration for Charity Shelter.
"""

import os
from dataclasses import replace
from typing import Any

import pytest

# Ensure test-friendly defaults
os.environ.setdefault("CHARITYSHELTER_JSON_LOGS", "false")
os.environ.setdefault("CHARITYSHELTER_LOG_LEVEL", "DEBUG")

from charityshelter.auth.permissions import Role  # noqa: E402
from charityshelter.kv.protocol import UserRecord  # noqa: E402


class InMemoryRoleStore:
    """Dict-backed RoleStore for service and API tests."""

    def __init__(self, roles: list[Role] | None = None) -> None:
        self.roles: dict[str, Role] = {r.name: r for r in roles or []}

    async def list_all(self) -> list[Role]:
        return sorted(self.roles.values(), key=lambda r: r.name)

    async def get(self, name: str) -> Role | None:
        return self.roles.get(name)

    async def put(self, role: Role) -> None:
        self.roles[role.name] = role

    async def create(self, role: Role) -> bool:
        if role.name in self.roles:
            return False
        self.roles[role.name] = role
        return True

    async def update(self, name: str, changes: dict[str, Any]) -> Role | None:
        if name not in self.roles:
            return None
        self.roles[name] = replace(self.roles[name], **changes)
        return self.roles[name]

    async def delete(self, name: str) -> bool:
        return self.roles.pop(name, None) is not None

    async def is_empty(self) -> bool:
        return not self.roles


class InMemoryUserStore:
    """Dict-backed UserStore for service and API tests."""

    def __init__(self, users: list[UserRecord] | None = None) -> None:
        self.users: dict[str, UserRecord] = {u.id: u for u in users or []}

    async def get_by_id(self, user_id: str) -> UserRecord | None:
        return self.users.get(user_id)

    async def find_by_email(self, email: str) -> UserRecord | None:
        for user in self.users.values():
            if user.email == email:
                return user
        return None

    async def put(self, user: UserRecord) -> None:
        self.users[user.id] = user

    async def set_roles(self, user_id: str, roles: list[str]) -> UserRecord | None:
        user = self.users.get(user_id)
        if user is None:
            return None
        user.roles = list(roles)
        return user


@pytest.fixture
def role_store() -> InMemoryRoleStore:
    return InMemoryRoleStore()


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()
