"""RBAC (Role-Based Access Control) service.

Roles grant an AccessLevel per ResourceType. A user's effective access is
the most permissive grant across every role they hold; roles that do not
exist are ignored, and a user with no roles is always denied. The
SuperAdmin role bypasses all checks.
"""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass

from charityshelter.auth.permissions import AccessLevel, ResourceType, Role
from charityshelter.auth.system_roles import SUPERADMIN_ROLE
from charityshelter.kv.protocol import RoleStore, UserRecord, UserStore
from charityshelter.logging_config import get_logger
from charityshelter.services.role_service import get_all_roles

logger = get_logger(__name__)

# Ordered: the first fragment found in the path decides the resource.
_PATH_RESOURCES: tuple[tuple[str, ResourceType], ...] = (
    ("/users", ResourceType.USERS),
    ("/posts", ResourceType.POSTS),
    ("/organizations", ResourceType.ORGANIZATIONS),
    ("/bookings", ResourceType.BOOKINGS),
    ("/analytics", ResourceType.ANALYTICS),
    ("/settings", ResourceType.SETTINGS),
    ("/donations", ResourceType.DONATIONS),
    ("/admin", ResourceType.USERS),
    ("/patrons", ResourceType.USERS),
    ("/roles", ResourceType.USERS),
)

_VERB_ACCESS_LEVELS: dict[str, AccessLevel] = {
    "GET": AccessLevel.READ_ONLY,
    "POST": AccessLevel.READ_WRITE,
    "PUT": AccessLevel.READ_WRITE,
    "PATCH": AccessLevel.READ_WRITE,
    "DELETE": AccessLevel.FULL,
}


def has_permission(
    user_role_names: Iterable[str],
    available_roles: Iterable[Role],
    resource: ResourceType,
    required: AccessLevel,
) -> bool:
    """
    Decide whether any of the user's roles grants ``required`` on ``resource``.

    Evaluation:
    1. No role names -> DENY
    2. Resolve names against available roles by exact match (unknown names ignored)
    3. Each resolved role contributes its level for the resource (NONE if absent)
    4. ALLOW if any contributed level is at or above the required level

    Pure function: no I/O, no logging, never raises for a denial.
    """
    names = set(user_role_names)
    if not names:
        return False

    return any(
        role.access_level_for(resource).satisfies(required)
        for role in available_roles
        if role.name in names
    )


def is_authorized(
    user_role_names: Iterable[str],
    available_roles: Iterable[Role],
    resource: ResourceType,
    required: AccessLevel,
) -> bool:
    """has_permission() preceded by the SuperAdmin bypass.

    Holding the role named exactly SuperAdmin always authorizes, whatever
    that role's stored permission list says.
    """
    names = list(user_role_names)
    if SUPERADMIN_ROLE in names:
        return True
    return has_permission(names, available_roles, resource, required)


def effective_permissions(
    user_role_names: Iterable[str],
    available_roles: Iterable[Role],
) -> dict[ResourceType, AccessLevel]:
    """Highest access level per resource across the user's resolved roles."""
    names = set(user_role_names)
    if SUPERADMIN_ROLE in names:
        return {resource: AccessLevel.FULL for resource in ResourceType}

    levels = {resource: AccessLevel.NONE for resource in ResourceType}
    for role in available_roles:
        if role.name not in names:
            continue
        for resource in ResourceType:
            granted = role.access_level_for(resource)
            if granted.rank > levels[resource].rank:
                levels[resource] = granted
    return levels


def unresolved_role_names(user_role_names: Iterable[str], available_roles: Iterable[Role]) -> list[str]:
    """Role names the user holds that match no known role."""
    known = {role.name for role in available_roles}
    return sorted(name for name in set(user_role_names) if name not in known)


def access_level_for_verb(verb: str) -> AccessLevel:
    """Access level an HTTP verb requires. Unknown verbs require READ_ONLY."""
    return _VERB_ACCESS_LEVELS.get(verb.upper(), AccessLevel.READ_ONLY)


def resource_for_path(path: str) -> ResourceType:
    """Resource a request path targets. Paths matching nothing target POSTS."""
    for fragment, resource in _PATH_RESOURCES:
        if fragment in path:
            return resource
    return ResourceType.POSTS


@dataclass
class AccessDecision:
    """Outcome of an authorization check for one user."""

    allowed: bool
    user: UserRecord | None
    resource: ResourceType
    access_level: AccessLevel

    @property
    def user_found(self) -> bool:
        return self.user is not None


async def check_user_access(
    user_store: UserStore,
    role_store: RoleStore,
    user_id: str,
    resource: ResourceType,
    required: AccessLevel,
) -> AccessDecision:
    """
    Load the user and the role catalogue concurrently, then decide.

    Returns an AccessDecision with ``user=None`` when the user does not
    exist; callers map that to 404 and a plain denial to 403.
    """
    user, roles = await asyncio.gather(
        user_store.get_by_id(user_id),
        get_all_roles(role_store),
    )

    if user is None:
        logger.debug("Access denied: user not found", user=user_id, resource=resource)
        return AccessDecision(allowed=False, user=None, resource=resource, access_level=required)

    missing = unresolved_role_names(user.roles, roles)
    if missing:
        logger.debug("Ignoring unknown roles", user=user_id, roles=missing)

    allowed = is_authorized(user.roles, roles, resource, required)
    logger.debug(
        "Access granted" if allowed else "Access denied: no role grants required level",
        user=user_id,
        resource=resource,
        access_level=required,
    )
    return AccessDecision(allowed=allowed, user=user, resource=resource, access_level=required)
