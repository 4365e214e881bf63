"""
Store protocols and record types for the key-value layer.

The permission engine only depends on these interfaces. Redis-backed
implementations live in ``kv.roles`` and ``kv.users``.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from charityshelter.auth.permissions import Role

# --- Data Types ---


@dataclass
class UserRecord:
    """A user as seen by authorization: identity plus assigned role names.

    Legacy records that carry a single ``role`` string instead of a
    ``roles`` list are normalized to ``roles=[role]`` on load, so nothing
    downstream ever sees the two shapes.
    """

    id: str
    email: str = ""
    username: str = ""
    roles: list[str] = field(default_factory=list)
    is_active: bool = True
    extra: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserRecord":
        known = {"id", "email", "username", "roles", "role", "isActive"}
        roles = data.get("roles")
        if roles is None:
            legacy = data.get("role")
            roles = [legacy] if legacy else []
        return cls(
            id=data["id"],
            email=data.get("email", ""),
            username=data.get("username", ""),
            roles=list(roles),
            is_active=data.get("isActive", True),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "roles": self.roles,
            "isActive": self.is_active,
        }


# --- Exceptions ---


class StoreError(Exception):
    """Base exception for key-value store operations."""


class ConcurrentUpdateError(StoreError):
    """Raised when an optimistic update keeps losing to concurrent writers."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Concurrent update conflict: {key}")


# --- Protocols ---


@runtime_checkable
class RoleStore(Protocol):
    """Persistence interface for role definitions."""

    async def list_all(self) -> list[Role]:
        """Return every stored role."""
        ...

    async def get(self, name: str) -> Role | None:
        """Return the role with this exact name, or None."""
        ...

    async def put(self, role: Role) -> None:
        """Store a role unconditionally, replacing any existing one."""
        ...

    async def create(self, role: Role) -> bool:
        """Store a role only if the name is free.

        Returns:
            True if stored, False if a role with that name already exists.
        """
        ...

    async def update(self, name: str, changes: dict[str, Any]) -> Role | None:
        """Apply ``changes`` to the stored role atomically.

        Returns:
            The updated role, or None if it does not exist.
        """
        ...

    async def delete(self, name: str) -> bool:
        """Delete a role. Returns True if it existed."""
        ...

    async def is_empty(self) -> bool:
        """True when no role has been stored yet."""
        ...


@runtime_checkable
class UserStore(Protocol):
    """Persistence interface for user records."""

    async def get_by_id(self, user_id: str) -> UserRecord | None:
        """Return the user, or None if not found."""
        ...

    async def find_by_email(self, email: str) -> UserRecord | None:
        """Return the first user with this email, or None."""
        ...

    async def put(self, user: UserRecord) -> None:
        """Store a user record."""
        ...

    async def set_roles(self, user_id: str, roles: list[str]) -> UserRecord | None:
        """Replace the user's role names. Returns None if the user does not exist."""
        ...
