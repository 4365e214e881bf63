"""Role and permission data model.

A Role is a named bundle of per-resource grants. Each grant pairs a
ResourceType with an AccessLevel; levels are ordered so that a higher
level implies every capability of the lower ones on the same resource.
Records are persisted as JSON using camelCase keys.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ResourceType(StrEnum):
    """Protected resource categories."""

    USERS = "users"
    POSTS = "posts"
    ORGANIZATIONS = "organizations"
    BOOKINGS = "bookings"
    ANALYTICS = "analytics"
    SETTINGS = "settings"
    DONATIONS = "donations"


class AccessLevel(StrEnum):
    """Ordered capability tiers: NONE < READ_ONLY < READ_WRITE < FULL."""

    NONE = "none"
    READ_ONLY = "read_only"
    READ_WRITE = "read_write"
    FULL = "full"

    @property
    def rank(self) -> int:
        return _ACCESS_LEVEL_RANK[self]

    def satisfies(self, required: "AccessLevel") -> bool:
        """True if this level is at or above ``required``."""
        return self.rank >= required.rank


_ACCESS_LEVEL_RANK: dict[AccessLevel, int] = {
    AccessLevel.NONE: 0,
    AccessLevel.READ_ONLY: 1,
    AccessLevel.READ_WRITE: 2,
    AccessLevel.FULL: 3,
}


class InvalidPermissionError(ValueError):
    """Raised when a permission entry carries an unknown resource or access level."""


@dataclass(frozen=True)
class Permission:
    """A single (resource, access level) grant."""

    resource: ResourceType
    access_level: AccessLevel

    def to_dict(self) -> dict[str, str]:
        return {"resource": self.resource.value, "accessLevel": self.access_level.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Permission":
        """Parse a ``{"resource", "accessLevel"}`` mapping.

        Raises:
            InvalidPermissionError: If either field is missing or not a known value.
        """
        resource = data.get("resource")
        access_level = data.get("accessLevel")
        if not resource or not access_level:
            raise InvalidPermissionError("Each permission must have resource and accessLevel")
        try:
            parsed_resource = ResourceType(resource)
        except ValueError:
            raise InvalidPermissionError(f"Invalid resource type: {resource}") from None
        try:
            parsed_level = AccessLevel(access_level)
        except ValueError:
            raise InvalidPermissionError(f"Invalid access level: {access_level}") from None
        return cls(resource=parsed_resource, access_level=parsed_level)


@dataclass
class Role:
    """A named bundle of permissions.

    ``name`` is the unique, case-sensitive identity key. System roles are
    immutable and cannot be deleted.
    """

    name: str
    description: str = ""
    permissions: list[Permission] = field(default_factory=list)
    is_system_role: bool = False

    def access_level_for(self, resource: ResourceType) -> AccessLevel:
        """Level granted on ``resource``; NONE when the role has no entry for it."""
        for permission in self.permissions:
            if permission.resource == resource:
                return permission.access_level
        return AccessLevel.NONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "permissions": [p.to_dict() for p in self.permissions],
            "isSystemRole": self.is_system_role,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Role":
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            permissions=[Permission.from_dict(p) for p in data.get("permissions", [])],
            is_system_role=bool(data.get("isSystemRole", False)),
        )


def parse_permissions(raw: Any) -> list[Permission]:
    """Parse a list of permission mappings from a request body.

    Raises:
        InvalidPermissionError: If ``raw`` is not a list or any entry is invalid.
    """
    if not isinstance(raw, list):
        raise InvalidPermissionError("Permissions must be an array")
    permissions = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise InvalidPermissionError("Each permission must have resource and accessLevel")
        permissions.append(Permission.from_dict(entry))
    return permissions
