# rbac_admin/services/assignment.py
"""
Full-replace assignment of roles to users and permissions to roles.

Both operations delete the existing join rows and insert the new set inside a
single transaction, so a reader never observes a half-written assignment and
no stale link survives the replace.
"""
from tortoise.transactions import in_transaction

from rbac_admin.core.errors import BadRequestError, NotFoundError
from rbac_admin.models import Permission, Role, RolePermission, User, UserRole


def _unique(ids: list[int]) -> list[int]:
    return list(dict.fromkeys(ids))


async def replace_user_roles(user_id, role_ids: list[int]) -> list[Role]:
    """
    Replace every role of a user with `role_ids` (assignment order kept).

    Raises:
        NotFoundError: If the user does not exist
        BadRequestError: If any role id does not exist
    """
    if not await User.filter(id=user_id).exists():
        raise NotFoundError("User not found")

    role_ids = _unique(role_ids)
    roles = {r.id: r for r in await Role.filter(id__in=role_ids)}
    if len(roles) != len(role_ids):
        raise BadRequestError("Some roles were not found")

    async with in_transaction() as conn:
        await UserRole.filter(user_id=user_id).using_db(conn).delete()
        if role_ids:
            await UserRole.bulk_create(
                [UserRole(user_id=user_id, role_id=rid) for rid in role_ids],
                using_db=conn,
            )
    return [roles[rid] for rid in role_ids]


async def replace_role_permissions(role_id: int, permission_ids: list[int]) -> list[Permission]:
    """
    Replace every permission of a role with `permission_ids`.

    Raises:
        NotFoundError: If the role does not exist
        BadRequestError: If any permission id does not exist
    """
    if not await Role.filter(id=role_id).exists():
        raise NotFoundError("Role not found")

    permission_ids = _unique(permission_ids)
    perms = {p.id: p for p in await Permission.filter(id__in=permission_ids)}
    if len(perms) != len(permission_ids):
        raise BadRequestError("Some permissions were not found")

    async with in_transaction() as conn:
        await RolePermission.filter(role_id=role_id).using_db(conn).delete()
        if permission_ids:
            await RolePermission.bulk_create(
                [RolePermission(role_id=role_id, permission_id=pid) for pid in permission_ids],
                using_db=conn,
            )
    return [perms[pid] for pid in permission_ids]
