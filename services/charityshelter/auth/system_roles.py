"""System roles that exist as code and are seeded into the role store.

System roles cannot be modified or deleted. Their names are reserved, so a
custom role can never shadow one of them.
"""

from charityshelter.auth.permissions import AccessLevel, Permission, ResourceType, Role

SUPERADMIN_ROLE = "SuperAdmin"


def _grants(*pairs: tuple[ResourceType, AccessLevel]) -> list[Permission]:
    return [Permission(resource=resource, access_level=level) for resource, level in pairs]


SYSTEM_ROLES: tuple[Role, ...] = (
    Role(
        name=SUPERADMIN_ROLE,
        description="Full access to all resources",
        permissions=_grants(*((resource, AccessLevel.FULL) for resource in ResourceType)),
        is_system_role=True,
    ),
    Role(
        name="ContentManager",
        description="Manage posts and content",
        permissions=_grants(
            (ResourceType.POSTS, AccessLevel.FULL),
            (ResourceType.ORGANIZATIONS, AccessLevel.READ_ONLY),
            (ResourceType.ANALYTICS, AccessLevel.READ_ONLY),
            (ResourceType.DONATIONS, AccessLevel.READ_ONLY),
        ),
        is_system_role=True,
    ),
    Role(
        name="BookingManager",
        description="Manage booking requests",
        permissions=_grants(
            (ResourceType.BOOKINGS, AccessLevel.FULL),
            (ResourceType.USERS, AccessLevel.READ_ONLY),
            (ResourceType.DONATIONS, AccessLevel.READ_ONLY),
        ),
        is_system_role=True,
    ),
    Role(
        name="DonationManager",
        description="Manage donations",
        permissions=_grants(
            (ResourceType.DONATIONS, AccessLevel.FULL),
            (ResourceType.ORGANIZATIONS, AccessLevel.READ_ONLY),
            (ResourceType.USERS, AccessLevel.READ_ONLY),
        ),
        is_system_role=True,
    ),
    Role(
        name="Patron",
        description="External organization representatives",
        permissions=_grants(
            (ResourceType.BOOKINGS, AccessLevel.READ_WRITE),
            (ResourceType.POSTS, AccessLevel.READ_ONLY),
            (ResourceType.ORGANIZATIONS, AccessLevel.READ_ONLY),
            (ResourceType.DONATIONS, AccessLevel.READ_WRITE),
        ),
        is_system_role=True,
    ),
    Role(
        name="Guest",
        description="Limited read-only access",
        permissions=_grants(
            (ResourceType.POSTS, AccessLevel.READ_ONLY),
            (ResourceType.ORGANIZATIONS, AccessLevel.READ_ONLY),
            (ResourceType.DONATIONS, AccessLevel.READ_ONLY),
        ),
        is_system_role=True,
    ),
)

SYSTEM_ROLE_NAMES: frozenset[str] = frozenset(role.name for role in SYSTEM_ROLES)


def is_system_role(name: str) -> bool:
    """Check if a role name belongs to the system registry."""
    return name in SYSTEM_ROLE_NAMES


def get_system_role(name: str) -> Role | None:
    """Return the system role with this name, or None."""
    for role in SYSTEM_ROLES:
        if role.name == name:
            return role
    return None
