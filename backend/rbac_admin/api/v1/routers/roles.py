# rbac_admin/api/v1/routers/roles.py
import logging
import math

from fastapi import APIRouter, Depends, Query
from tortoise.functions import Count

from rbac_admin.api.v1.deps import RequestContext, require_permissions
from rbac_admin.core.errors import ConflictError, NotFoundError
from rbac_admin.core.permission_catalog import build_catalog
from rbac_admin.core.responses import ok
from rbac_admin.models import Permission, Role, RolePermission, UserRole
from rbac_admin.schemas.role import RolePermissionsIn, RoleUpdateIn
from rbac_admin.services.assignment import replace_role_permissions
from rbac_admin.services.user_directory import permission_to_dict, role_to_dict

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/roles", tags=["roles"])

can_view = require_permissions("view_role", "view_any_role")
can_update = require_permissions("update_role")


async def _get_role(role_id: int) -> Role:
    role = await Role.get_or_none(id=role_id)
    if not role:
        raise NotFoundError("Role not found")
    return role


async def _role_detail(role: Role) -> dict:
    """Role with its permissions (grant order) and the users holding it."""
    perm_links = await RolePermission.filter(role_id=role.id).order_by("id").prefetch_related("permission")
    user_links = await UserRole.filter(role_id=role.id).order_by("id").prefetch_related("user")
    data = role_to_dict(role)
    data["created_at"] = role.created_at.isoformat() if role.created_at else None
    data["updated_at"] = role.updated_at.isoformat() if role.updated_at else None
    data["permissions"] = [permission_to_dict(link.permission) for link in perm_links]
    data["users"] = [
        {
            "id": str(link.user.id),
            "username": link.user.username,
            "email": link.user.email,
            "fullname": link.user.fullname,
        }
        for link in user_links
    ]
    return data


@router.get("")
async def list_roles(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(default=None, description="Search by role name"),
    ctx: RequestContext = Depends(can_view),
):
    """
    Paginated list of roles with `permissions_count` and `users_count`.
    """
    qs = Role.all()
    if search:
        qs = qs.filter(name__icontains=search)
    total = await qs.count()
    rows = (
        await qs.annotate(
            permissions_count=Count("permission_links", distinct=True),
            users_count=Count("user_links", distinct=True),
        )
        .order_by("id")
        .offset((page - 1) * limit)
        .limit(limit)
    )
    roles = [
        {**role_to_dict(r), "permissions_count": r.permissions_count, "users_count": r.users_count}
        for r in rows
    ]
    return ok("Roles retrieved", {
        "roles": roles,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if total else 0,
        },
    })


@router.get("/permissions")
async def list_permissions(
    grouped: bool = Query(False, description="Also return the editor catalog grouping"),
    ctx: RequestContext = Depends(can_view),
):
    """
    Every permission, ordered by name. With `grouped=true` the payload also
    holds `catalog`: category -> model groups, in editor display order.
    """
    perms = [permission_to_dict(p) for p in await Permission.all().order_by("name")]
    data = {"permissions": perms}
    if grouped:
        data["catalog"] = build_catalog(perms)
    return ok("Permissions retrieved", data)


@router.get("/{role_id}")
async def get_role(role_id: int, ctx: RequestContext = Depends(can_view)):
    role = await _get_role(role_id)
    return ok("Role retrieved", await _role_detail(role))


@router.put("/{role_id}")
async def update_role(role_id: int, body: RoleUpdateIn, ctx: RequestContext = Depends(can_update)):
    """
    Rename a role or change its guard.

    Raises:
        NotFoundError (404): Role not found
        ConflictError (409): Another role already has the name
    """
    role = await _get_role(role_id)
    if await Role.filter(name=body.name).exclude(id=role.id).exists():
        raise ConflictError("Role name already in use")
    role.name = body.name
    role.guard_name = body.guard_name
    await role.save()
    return ok("Role updated", await _role_detail(role))


@router.put("/{role_id}/permissions")
async def update_role_permissions(role_id: int, body: RolePermissionsIn, ctx: RequestContext = Depends(can_update)):
    """
    Replace all of a role's permissions with `permission_ids` (delete +
    insert in one transaction). Takes effect on the next request of every
    user holding the role.
    """
    await replace_role_permissions(role_id, body.permission_ids)
    role = await _get_role(role_id)
    logger.info("[roles] permissions replaced role=%s count=%d by=%s",
                role.name, len(body.permission_ids), ctx.user_id)
    return ok("Role permissions updated", await _role_detail(role))
