"""User role assignment endpoints (admin).

Endpoints:
    GET  /api/v1/admin/users/{user_id}/roles   - show a user's role names
    PUT  /api/v1/admin/users/{user_id}/roles   - replace a user's role names
    GET  /api/v1/admin/users/{user_id}/access  - evaluate a user's access to a resource
"""

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query
from fastapi.responses import JSONResponse

from charityshelter.api.dependencies import AuthenticatedUser, enforce_rbac
from charityshelter.api.documents import document_attributes
from charityshelter.auth.permissions import AccessLevel, ResourceType
from charityshelter.config import settings
from charityshelter.kv import get_role_store, get_user_store
from charityshelter.kv.protocol import RoleStore, UserRecord, UserStore
from charityshelter.logging_config import get_logger
from charityshelter.services.rbac_service import check_user_access
from charityshelter.services.role_service import get_all_roles

router = APIRouter(prefix=f"{settings.api_prefix}/admin", tags=["role-assignments"])
logger = get_logger(__name__)


def _assignment_json(user: UserRecord) -> dict:
    return {
        "id": user.id,
        "type": "role-assignments",
        "attributes": {
            "email": user.email,
            "roles": user.roles,
        },
    }


@router.get("/users/{user_id}/roles")
async def show_user_roles(
    user_id: str = Path(...),
    user: AuthenticatedUser = Depends(enforce_rbac),
    user_store: UserStore = Depends(get_user_store),
) -> JSONResponse:
    """Show the role names assigned to a user."""
    target = await user_store.get_by_id(user_id)
    if target is None:
        raise HTTPException(status_code=404, detail="User not found")

    return JSONResponse(content={"data": _assignment_json(target)})


@router.put("/users/{user_id}/roles")
async def set_user_roles(
    user_id: str = Path(...),
    body: dict = Body(...),
    user: AuthenticatedUser = Depends(enforce_rbac),
    user_store: UserStore = Depends(get_user_store),
    role_store: RoleStore = Depends(get_role_store),
) -> JSONResponse:
    """Replace the role names assigned to a user.

    Every name must resolve to a system or custom role.
    """
    attrs = document_attributes(body)
    role_names = attrs.get("roles")
    if not isinstance(role_names, list) or not all(isinstance(r, str) for r in role_names):
        raise HTTPException(status_code=422, detail="Roles must be a list of role names")

    known = {role.name for role in await get_all_roles(role_store)}
    for name in role_names:
        if name not in known:
            raise HTTPException(status_code=422, detail=f"Role '{name}' not found")

    # Preserve order, drop duplicates
    roles = list(dict.fromkeys(role_names))

    target = await user_store.set_roles(user_id, roles)
    if target is None:
        raise HTTPException(status_code=404, detail="User not found")

    logger.info("Role assignments updated", user_id=user_id, roles=roles, by=user.user_id)
    return JSONResponse(content={"data": _assignment_json(target)})


@router.get("/users/{user_id}/access")
async def show_user_access(
    user_id: str = Path(...),
    resource: ResourceType = Query(...),
    access_level: AccessLevel = Query(..., alias="access-level"),
    user: AuthenticatedUser = Depends(enforce_rbac),
    user_store: UserStore = Depends(get_user_store),
    role_store: RoleStore = Depends(get_role_store),
) -> JSONResponse:
    """Evaluate whether a user holds ``access-level`` on ``resource``."""
    decision = await check_user_access(user_store, role_store, user_id, resource, access_level)
    if not decision.user_found:
        raise HTTPException(status_code=404, detail="User not found")

    return JSONResponse(
        content={
            "data": {
                "id": user_id,
                "type": "access-decisions",
                "attributes": {
                    "resource": decision.resource.value,
                    "access-level": decision.access_level.value,
                    "allowed": decision.allowed,
                    "roles": decision.user.roles,
                },
            }
        }
    )
