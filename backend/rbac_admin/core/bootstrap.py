# rbac_admin/core/bootstrap.py
"""
Bootstrap module for application initialization.
Seeds the default roles and permissions and creates a default superadmin
account on first startup.
"""
import os
import logging

from rbac_admin.config import settings
from rbac_admin.core.security import hash_password
from rbac_admin.models import Permission, Role, RolePermission, User, UserRole

logger = logging.getLogger("uvicorn.error")

DEFAULT_ROLES = ("superadmin", "operator", "supervisor", "mahasiswa")

DEFAULT_PERMISSIONS = (
    # users
    "view_user",
    "view_any_user",
    "create_user",
    "update_user",
    "delete_user",
    "delete_any_user",
    "restore_user",
    "restore_any_user",
    "force_delete_user",
    "force_delete_any_user",
    # roles
    "view_role",
    "view_any_role",
    "create_role",
    "update_role",
    "delete_role",
    "delete_any_role",
)


async def seed_roles_and_permissions() -> None:
    """
    Create the default roles and permissions if absent (idempotent).
    The superadmin role receives every permission, but only while it holds
    none, so an operator's later edits are never overwritten.
    """
    for name in dict.fromkeys((settings.superadmin_role, *DEFAULT_ROLES)):
        await Role.get_or_create(name=name, defaults={"guard_name": "web"})
    permissions = []
    for name in DEFAULT_PERMISSIONS:
        perm, _ = await Permission.get_or_create(name=name, defaults={"guard_name": "web"})
        permissions.append(perm)

    superadmin = await Role.get(name=settings.superadmin_role)
    if not await RolePermission.filter(role_id=superadmin.id).exists():
        await RolePermission.bulk_create(
            [RolePermission(role_id=superadmin.id, permission_id=p.id) for p in permissions]
        )
        logger.info("[bootstrap] Granted %d permissions to role %s", len(permissions), superadmin.name)


async def ensure_default_admin() -> None:
    """
    If nobody holds the superadmin role, create a default superadmin based on
    environment variables.
    Only takes effect under the following conditions:
      - Currently no user with the superadmin role
      - And ADMIN_PASSWORD is set (to avoid using default weak password)
    Environment variables:
      ADMIN_USERNAME (default: "admin")
      ADMIN_EMAIL    (default: "admin@example.com")
      ADMIN_PASSWORD (required, otherwise won't create)
    """
    superadmin = await Role.get_or_none(name=settings.superadmin_role)
    if superadmin is None:
        return
    if await UserRole.filter(role_id=superadmin.id).exists():
        return

    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_password:
        logger.warning("[bootstrap] No superadmin present, but ADMIN_PASSWORD not set -> skip creating default admin.")
        return

    admin_username = os.getenv("ADMIN_USERNAME", "admin")
    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com").strip().lower()
    if await User.filter(email=admin_email).exists():
        logger.warning("[bootstrap] ADMIN_EMAIL %s already registered -> skip creating default admin.", admin_email)
        return

    # If username is already taken, create a non-conflicting name
    base_username = admin_username
    suffix = 1
    while await User.filter(username=admin_username).exists():
        suffix += 1
        admin_username = f"{base_username}{suffix}"

    u = await User.create(
        username=admin_username,
        email=admin_email,
        password_hash=hash_password(admin_password),
        firstname="Super",
        lastname="Admin",
        fullname="Super Admin",
    )
    await UserRole.create(user_id=u.id, role_id=superadmin.id)
    logger.warning("[bootstrap] Created default superadmin -> username=%s email=%s id=%s",
                   u.username, u.email, u.id)


async def bootstrap() -> None:
    await seed_roles_and_permissions()
    await ensure_default_admin()
