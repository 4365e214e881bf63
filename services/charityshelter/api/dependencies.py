"""FastAPI dependencies for authentication and authorization.

Authentication: an API key in the configured header (X-API-Key by default)
or as an Authorization Bearer token. The key is hashed and looked up in
Redis, then the owning user record supplies the role names.

Authorization has two layers:
- enforce_rbac infers (resource, access level) from the request path and
  HTTP verb and is attached to whole admin routers
- require_permission(resource, level) pins an explicit requirement on a
  single endpoint
Both go through rbac_service.is_authorized, which applies the SuperAdmin
bypass before evaluating role grants.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from charityshelter.auth.api_keys import validate_api_key
from charityshelter.auth.permissions import AccessLevel, ResourceType
from charityshelter.auth.system_roles import SUPERADMIN_ROLE
from charityshelter.config import settings
from charityshelter.kv import get_role_store, get_user_store
from charityshelter.kv.protocol import RoleStore, UserStore
from charityshelter.logging_config import get_logger
from charityshelter.redis.client import get_redis
from charityshelter.services.rbac_service import (
    access_level_for_verb,
    is_authorized,
    resource_for_path,
)
from charityshelter.services.role_service import get_all_roles

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)

DEV_USER_ID = "dev-user"


@dataclass
class AuthenticatedUser:
    """Identity resolved from an API key."""

    user_id: str
    email: str
    roles: list[str]
    auth_method: str  # "api_key" or "dev_key"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    redis: aioredis.Redis = Depends(get_redis),
    user_store: UserStore = Depends(get_user_store),
) -> AuthenticatedUser:
    """Resolve the caller from their API key.

    1. Read the key from the API key header, falling back to Bearer
    2. Accept the configured development key as a SuperAdmin identity
    3. Otherwise hash the key and look it up in Redis
    4. Load the owning user; missing or disabled users are rejected

    Returns AuthenticatedUser with the user's normalized role names.
    """
    raw_key = request.headers.get(settings.auth.api_key_header)
    if not raw_key and credentials is not None:
        raw_key = credentials.credentials
    if not raw_key:
        raise _unauthorized("API key required")

    dev_key = settings.auth.dev_api_key
    if dev_key and raw_key == dev_key:
        return AuthenticatedUser(
            user_id=DEV_USER_ID,
            email="",
            roles=[SUPERADMIN_ROLE],
            auth_method="dev_key",
        )

    api_key = await validate_api_key(redis, raw_key)
    if api_key is None:
        logger.warning("Invalid API key", path=request.url.path)
        raise _unauthorized("Invalid API key")

    user = await user_store.get_by_id(api_key.user_id)
    if user is None:
        logger.warning("API key owner no longer exists", user_id=api_key.user_id)
        raise _unauthorized("Invalid API key")
    if not user.is_active:
        raise _unauthorized("User account is disabled")

    return AuthenticatedUser(
        user_id=user.id,
        email=user.email,
        roles=user.roles,
        auth_method="api_key",
    )


def _forbidden(user: AuthenticatedUser, resource: ResourceType, level: AccessLevel) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={
            "error": "Insufficient permissions",
            "required": {"resource": resource.value, "accessLevel": level.value},
            "userRoles": user.roles,
        },
    )


async def _authorize(
    user: AuthenticatedUser,
    role_store: RoleStore,
    resource: ResourceType,
    level: AccessLevel,
) -> AuthenticatedUser:
    roles = await get_all_roles(role_store)
    if not is_authorized(user.roles, roles, resource, level):
        logger.info(
            "Permission denied",
            user=user.user_id,
            resource=resource,
            access_level=level,
        )
        raise _forbidden(user, resource, level)
    return user


async def enforce_rbac(
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
    role_store: RoleStore = Depends(get_role_store),
) -> AuthenticatedUser:
    """Dependency that derives the requirement from the request itself."""
    resource = resource_for_path(request.url.path)
    level = access_level_for_verb(request.method)
    return await _authorize(user, role_store, resource, level)


def require_permission(
    resource: ResourceType,
    level: AccessLevel,
) -> Callable[..., Awaitable[AuthenticatedUser]]:
    """Build a dependency requiring ``level`` on ``resource``.

    Usage:
        @router.post("/roles")
        async def create(user=Depends(require_permission(ResourceType.USERS, AccessLevel.FULL))):
            ...
    """

    async def dependency(
        user: AuthenticatedUser = Depends(get_current_user),
        role_store: RoleStore = Depends(get_role_store),
    ) -> AuthenticatedUser:
        return await _authorize(user, role_store, resource, level)

    return dependency
