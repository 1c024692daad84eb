# rbac_admin/services/user_directory.py
"""
Response shapes for users, roles and permissions.

Every router and the impersonation service build their payloads here so a
user looks the same wherever it is returned.
"""
import datetime as dt

from rbac_admin.models import Permission, Role, User, UserProfile
from rbac_admin.services.permission_resolver import resolve_user_permissions, resolve_user_roles


def _iso(value: dt.datetime | None) -> str | None:
    return value.isoformat() if value else None


def role_to_dict(role: Role) -> dict:
    return {"id": role.id, "name": role.name, "guard_name": role.guard_name}


def permission_to_dict(perm: Permission) -> dict:
    return {"id": perm.id, "name": perm.name, "guard_name": perm.guard_name}


def profile_to_dict(profile: UserProfile | None) -> dict | None:
    if profile is None:
        return None
    return {
        "id": profile.id,
        "nim": profile.nim,
        "major": profile.major,
        "faculty": profile.faculty,
        "room_number": profile.room_number,
        "is_verified": profile.is_verified,
    }


def public_identity(user: User) -> dict:
    """Minimal identity shown as "impersonated by" in the admin panel."""
    return {"id": str(user.id), "username": user.username, "email": user.email}


def user_to_dict(user: User) -> dict:
    """
    Convert a User model instance to the base dictionary returned by the API.
    Never includes the password hash.
    """
    return {
        "id": str(user.id),
        "username": user.username,
        "email": user.email,
        "firstname": user.firstname,
        "lastname": user.lastname,
        "fullname": user.fullname,
        "phone_number": user.phone_number,
        "email_verified_at": _iso(user.email_verified_at),
        "created_at": _iso(user.created_at),
        "updated_at": _iso(user.updated_at),
        "deleted_at": _iso(user.deleted_at),
    }


async def user_profile(user: User, *, with_permissions: bool = True) -> dict:
    """
    Full user profile: base fields, resolved roles, resolved permissions
    (deduplicated by name) and the profile sub-record.
    """
    data = user_to_dict(user)
    data["roles"] = [role_to_dict(r) for r in await resolve_user_roles(user.id)]
    if with_permissions:
        data["permissions"] = [permission_to_dict(p) for p in await resolve_user_permissions(user.id)]
    data["user_profile"] = profile_to_dict(await UserProfile.get_or_none(user_id=user.id))
    return data
