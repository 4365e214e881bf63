"""Role CRUD endpoints (admin).

Endpoints:
    GET    /api/v1/admin/roles           - list all roles (system + custom)
    POST   /api/v1/admin/roles           - create custom role
    GET    /api/v1/admin/roles/{name}    - show role
    PUT    /api/v1/admin/roles/{name}    - update custom role
    DELETE /api/v1/admin/roles/{name}    - delete custom role

Every endpoint passes the path/verb RBAC check and also pins USERS
explicitly, since a role name in the path can match another resource:
reads need READ_ONLY, mutations need FULL.
"""

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Response
from fastapi.responses import JSONResponse

from charityshelter.api.dependencies import AuthenticatedUser, enforce_rbac, require_permission
from charityshelter.api.documents import document_attributes, document_data
from charityshelter.auth.permissions import (
    AccessLevel,
    InvalidPermissionError,
    ResourceType,
    Role,
    parse_permissions,
)
from charityshelter.config import settings
from charityshelter.kv import get_role_store
from charityshelter.kv.protocol import RoleStore
from charityshelter.logging_config import get_logger
from charityshelter.services import role_service
from charityshelter.services.role_service import (
    RoleConflictError,
    RoleNotFoundError,
    SystemRoleError,
)

router = APIRouter(
    prefix=f"{settings.api_prefix}/admin",
    tags=["roles"],
    dependencies=[Depends(enforce_rbac)],
)
logger = get_logger(__name__)

require_users_read = require_permission(ResourceType.USERS, AccessLevel.READ_ONLY)
require_users_full = require_permission(ResourceType.USERS, AccessLevel.FULL)


def _role_json(role: Role) -> dict:
    return {
        "name": role.name,
        "type": "roles",
        "attributes": {
            "description": role.description,
            "permissions": [p.to_dict() for p in role.permissions],
            "system-role": role.is_system_role,
        },
    }


def _invalid_permissions(exc: InvalidPermissionError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={
            "error": str(exc),
            "validResources": [r.value for r in ResourceType],
            "validAccessLevels": [a.value for a in AccessLevel],
        },
    )


@router.get("/roles")
async def list_roles(
    user: AuthenticatedUser = Depends(require_users_read),
    role_store: RoleStore = Depends(get_role_store),
) -> JSONResponse:
    """List all roles (system + custom)."""
    roles = await role_service.get_all_roles(role_store)
    return JSONResponse(content={"data": [_role_json(r) for r in roles]})


@router.post("/roles", status_code=201)
async def create_role(
    body: dict = Body(...),
    user: AuthenticatedUser = Depends(require_users_full),
    role_store: RoleStore = Depends(get_role_store),
) -> JSONResponse:
    """Create a custom role."""
    attrs = document_attributes(body)
    name = document_data(body).get("name") or attrs.get("name")
    description = attrs.get("description")
    if not name or not description:
        raise HTTPException(status_code=422, detail="Role name and description are required")
    if not isinstance(name, str) or not isinstance(description, str):
        raise HTTPException(status_code=422, detail="Role name and description must be strings")

    try:
        permissions = parse_permissions(attrs.get("permissions"))
    except InvalidPermissionError as e:
        raise _invalid_permissions(e) from None

    try:
        role = await role_service.create_role(role_store, name, description, permissions)
    except RoleConflictError:
        raise HTTPException(
            status_code=409, detail=f"Role '{name}' already exists"
        ) from None

    logger.info("Role created via API", role=name, by=user.user_id)
    return JSONResponse(content={"data": _role_json(role)}, status_code=201)


@router.get("/roles/{role_name}")
async def show_role(
    role_name: str = Path(...),
    user: AuthenticatedUser = Depends(require_users_read),
    role_store: RoleStore = Depends(get_role_store),
) -> JSONResponse:
    """Show a role by name."""
    try:
        role = await role_service.get_role(role_store, role_name)
    except RoleNotFoundError:
        raise HTTPException(status_code=404, detail="Role not found") from None

    return JSONResponse(content={"data": _role_json(role)})


@router.put("/roles/{role_name}")
async def update_role(
    role_name: str = Path(...),
    body: dict = Body(...),
    user: AuthenticatedUser = Depends(require_users_full),
    role_store: RoleStore = Depends(get_role_store),
) -> JSONResponse:
    """Update a custom role's description and/or permissions."""
    attrs = document_attributes(body)
    description = attrs.get("description")
    if description is not None and not isinstance(description, str):
        raise HTTPException(status_code=422, detail="Role description must be a string")

    permissions = None
    if "permissions" in attrs:
        try:
            permissions = parse_permissions(attrs["permissions"])
        except InvalidPermissionError as e:
            raise _invalid_permissions(e) from None

    try:
        role = await role_service.update_role(
            role_store,
            role_name,
            description=description,
            permissions=permissions,
        )
    except SystemRoleError:
        raise HTTPException(status_code=403, detail="Cannot modify system roles") from None
    except RoleNotFoundError:
        raise HTTPException(status_code=404, detail="Role not found") from None

    logger.info("Role updated via API", role=role_name, by=user.user_id)
    return JSONResponse(content={"data": _role_json(role)})


@router.delete("/roles/{role_name}", status_code=204)
async def delete_role(
    role_name: str = Path(...),
    user: AuthenticatedUser = Depends(require_users_full),
    role_store: RoleStore = Depends(get_role_store),
) -> Response:
    """Delete a custom role."""
    try:
        await role_service.delete_role(role_store, role_name)
    except SystemRoleError:
        raise HTTPException(status_code=403, detail="Cannot delete system roles") from None
    except RoleNotFoundError:
        raise HTTPException(status_code=404, detail="Role not found") from None

    logger.info("Role deleted via API", role=role_name, by=user.user_id)
    return Response(status_code=204)
