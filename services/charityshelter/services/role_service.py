"""Role registry and lifecycle service.

Combines the built-in system roles with custom roles held in the role
store, seeds the store on first start, and enforces the lifecycle rules:
names are unique, system roles are never updated or deleted.
"""

from charityshelter.auth.permissions import Permission, Role
from charityshelter.auth.system_roles import SYSTEM_ROLES, is_system_role
from charityshelter.kv.protocol import RoleStore
from charityshelter.logging_config import get_logger

logger = get_logger(__name__)


class RoleServiceError(Exception):
    """Base exception for role lifecycle operations."""


class RoleNotFoundError(RoleServiceError):
    """Raised when the named role does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Role not found: {name}")


class RoleConflictError(RoleServiceError):
    """Raised when creating a role whose name is already taken."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Role with this name already exists: {name}")


class SystemRoleError(RoleServiceError):
    """Raised when a mutation targets a system role."""

    def __init__(self, name: str, action: str) -> None:
        self.name = name
        self.action = action
        super().__init__(f"Cannot {action} system roles")


async def get_all_roles(store: RoleStore) -> list[Role]:
    """System roles followed by stored custom roles.

    A stored record whose name matches a system role is skipped, so the
    in-code definition always wins.
    """
    roles = list(SYSTEM_ROLES)
    seen = {role.name for role in roles}
    for role in await store.list_all():
        if role.name not in seen:
            roles.append(role)
            seen.add(role.name)
    return roles


async def get_role(store: RoleStore, name: str) -> Role:
    """Look up one role, system registry first.

    Raises:
        RoleNotFoundError: If no role has this name.
    """
    for role in SYSTEM_ROLES:
        if role.name == name:
            return role
    role = await store.get(name)
    if role is None:
        raise RoleNotFoundError(name)
    return role


async def initialize_roles(store: RoleStore) -> int:
    """Seed the system roles into an empty store.

    Idempotent: a store holding any role is left untouched.

    Returns:
        Number of roles written.
    """
    if not await store.is_empty():
        logger.debug("Role store already initialized")
        return 0

    logger.info("No roles found, initializing system roles")
    for role in SYSTEM_ROLES:
        await store.put(role)
    logger.info("System roles initialized", count=len(SYSTEM_ROLES))
    return len(SYSTEM_ROLES)


async def create_role(
    store: RoleStore,
    name: str,
    description: str,
    permissions: list[Permission],
) -> Role:
    """Create a custom role.

    Raises:
        RoleConflictError: If a system or custom role already uses ``name``.
    """
    if is_system_role(name):
        raise RoleConflictError(name)

    role = Role(name=name, description=description, permissions=permissions, is_system_role=False)
    if not await store.create(role):
        raise RoleConflictError(name)

    logger.info("Role created", role=name)
    return role


async def update_role(
    store: RoleStore,
    name: str,
    description: str | None = None,
    permissions: list[Permission] | None = None,
) -> Role:
    """Update a custom role's description and/or permissions.

    Raises:
        SystemRoleError: If ``name`` is a system role.
        RoleNotFoundError: If no custom role has this name.
    """
    await _ensure_mutable(store, name, "modify")

    changes: dict = {}
    if description is not None:
        changes["description"] = description
    if permissions is not None:
        changes["permissions"] = permissions

    role = await store.update(name, changes)
    if role is None:
        raise RoleNotFoundError(name)

    logger.info("Role updated", role=name, fields=sorted(changes))
    return role


async def delete_role(store: RoleStore, name: str) -> None:
    """Delete a custom role.

    Raises:
        SystemRoleError: If ``name`` is a system role.
        RoleNotFoundError: If no custom role has this name.
    """
    await _ensure_mutable(store, name, "delete")

    if not await store.delete(name):
        raise RoleNotFoundError(name)

    logger.info("Role deleted", role=name)


async def _ensure_mutable(store: RoleStore, name: str, action: str) -> None:
    if is_system_role(name):
        raise SystemRoleError(name, action)

    # Records flagged as system roles by an older registry stay protected
    existing = await store.get(name)
    if existing is not None and existing.is_system_role:
        raise SystemRoleError(name, action)
