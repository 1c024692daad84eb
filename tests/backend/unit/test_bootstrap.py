"""
Unit tests for core.bootstrap (seeding and default superadmin).
"""
import pytest

from rbac_admin.core.bootstrap import DEFAULT_PERMISSIONS, DEFAULT_ROLES, bootstrap, seed_roles_and_permissions
from rbac_admin.core.security import verify_password
from rbac_admin.models import Permission, Role, RolePermission, User, UserRole

pytestmark = pytest.mark.asyncio


async def test_seeding_is_idempotent(db):
    await seed_roles_and_permissions()
    assert await Role.filter(name__in=DEFAULT_ROLES).count() == len(DEFAULT_ROLES)
    assert await Permission.filter(name__in=DEFAULT_PERMISSIONS).count() == len(DEFAULT_PERMISSIONS)
    superadmin = await Role.get(name="superadmin")
    assert await RolePermission.filter(role_id=superadmin.id).count() == len(DEFAULT_PERMISSIONS)


async def test_superadmin_grants_are_not_restored_once_edited(db):
    superadmin = await Role.get(name="superadmin")
    view_user = await Permission.get(name="view_user")
    await RolePermission.filter(role_id=superadmin.id).exclude(permission_id=view_user.id).delete()

    await seed_roles_and_permissions()
    assert await RolePermission.filter(role_id=superadmin.id).count() == 1


async def test_default_admin_needs_password(db, monkeypatch):
    monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
    await bootstrap()
    assert await User.all().count() == 0


async def test_default_admin_is_created_once(db, monkeypatch):
    monkeypatch.setenv("ADMIN_PASSWORD", "Adm1nPassword")
    monkeypatch.setenv("ADMIN_USERNAME", "admin")
    monkeypatch.setenv("ADMIN_EMAIL", "Admin@Example.com")

    await bootstrap()
    await bootstrap()

    admin = await User.get(username="admin")
    assert admin.email == "admin@example.com"
    assert verify_password("Adm1nPassword", admin.password_hash)
    superadmin = await Role.get(name="superadmin")
    assert await UserRole.filter(role_id=superadmin.id).count() == 1
