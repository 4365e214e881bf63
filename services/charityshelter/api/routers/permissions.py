"""Permission introspection for the calling user.

Endpoints:
    GET  /api/v1/permissions/me     - effective access level per resource
    POST /api/v1/permissions/check  - evaluate one (resource, accessLevel) pair
"""

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse

from charityshelter.api.dependencies import AuthenticatedUser, get_current_user
from charityshelter.auth.permissions import AccessLevel, ResourceType
from charityshelter.config import settings
from charityshelter.kv import get_role_store
from charityshelter.kv.protocol import RoleStore
from charityshelter.services.rbac_service import (
    effective_permissions,
    is_authorized,
    unresolved_role_names,
)
from charityshelter.services.role_service import get_all_roles

router = APIRouter(prefix=f"{settings.api_prefix}/permissions", tags=["permissions"])


@router.get("/me")
async def my_permissions(
    user: AuthenticatedUser = Depends(get_current_user),
    role_store: RoleStore = Depends(get_role_store),
) -> JSONResponse:
    """Effective access level per resource across all of the caller's roles."""
    roles = await get_all_roles(role_store)
    levels = effective_permissions(user.roles, roles)

    return JSONResponse(
        content={
            "data": {
                "id": user.user_id,
                "type": "permissions",
                "attributes": {
                    "roles": user.roles,
                    "unknown-roles": unresolved_role_names(user.roles, roles),
                    "permissions": {r.value: level.value for r, level in levels.items()},
                },
            }
        }
    )


@router.post("/check")
async def check_permission(
    body: dict = Body(...),
    user: AuthenticatedUser = Depends(get_current_user),
    role_store: RoleStore = Depends(get_role_store),
) -> JSONResponse:
    """Check whether the caller holds ``accessLevel`` on ``resource``."""
    try:
        resource = ResourceType(body.get("resource"))
        level = AccessLevel(body.get("accessLevel"))
    except ValueError:
        raise HTTPException(
            status_code=422,
            detail={
                "error": "Invalid resource or access level",
                "validResources": [r.value for r in ResourceType],
                "validAccessLevels": [a.value for a in AccessLevel],
            },
        ) from None

    roles = await get_all_roles(role_store)
    allowed = is_authorized(user.roles, roles, resource, level)

    return JSONResponse(
        content={
            "allowed": allowed,
            "required": {"resource": resource.value, "accessLevel": level.value},
        }
    )
