# rbac_admin/services/permission_resolver.py
"""
Permission resolution and authorization decisions.

A user's effective permissions are the union of the permissions of every role
assigned to them, deduplicated by permission name. Nothing is cached: each
call re-reads the role/permission graph from the database, so assignment
changes take effect on the very next request.
"""
import enum
from typing import Iterable

from rbac_admin.core.errors import ForbiddenError, NotFoundError
from rbac_admin.models import Permission, Role, RolePermission, User, UserRole


class Policy(str, enum.Enum):
    """How a set of required permissions is matched against the effective set."""
    ANY = "any"  # at least one required permission held
    ALL = "all"  # every required permission held


async def get_user_or_404(user_id) -> User:
    user = await User.get_or_none(id=user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def resolve_user_roles(user_id) -> list[Role]:
    """
    Roles assigned to a user, in assignment order.

    Raises:
        NotFoundError: If the user does not exist
    """
    await get_user_or_404(user_id)
    links = await UserRole.filter(user_id=user_id).order_by("id").prefetch_related("role")
    return [link.role for link in links]


async def resolve_user_permissions(user_id) -> list[Permission]:
    """
    Effective permissions of a user, deduplicated by name.

    Roles are walked in assignment order and each role's permissions in grant
    order; the first permission seen for a given name wins.

    Raises:
        NotFoundError: If the user does not exist
    """
    roles = await resolve_user_roles(user_id)
    if not roles:
        return []

    order = {role.id: idx for idx, role in enumerate(roles)}
    links = await RolePermission.filter(role_id__in=list(order)).order_by("id").prefetch_related("permission")
    links.sort(key=lambda link: order[link.role_id])  # stable: grant order kept within a role

    by_name: dict[str, Permission] = {}
    for link in links:
        by_name.setdefault(link.permission.name, link.permission)
    return list(by_name.values())


async def effective_permissions(user_id) -> frozenset[str]:
    return frozenset(p.name for p in await resolve_user_permissions(user_id))


def is_authorized(required: Iterable[str], effective: Iterable[str], policy: Policy = Policy.ANY) -> bool:
    """
    Pure policy decision.

    ANY passes iff the two sets intersect; ALL passes iff required is a subset
    of effective. An empty requirement never passes under ANY and always
    passes under ALL.
    """
    required = set(required)
    effective = set(effective)
    if policy is Policy.ALL:
        return required <= effective
    return bool(required & effective)


def missing_permissions(required: Iterable[str], effective: Iterable[str]) -> list[str]:
    effective = set(effective)
    return [name for name in required if name not in effective]


async def authorize(user_id, required: list[str], policy: Policy = Policy.ANY) -> frozenset[str]:
    """
    Re-resolve the user's permissions and enforce the policy.

    Returns:
        The effective permission names (for downstream handlers)

    Raises:
        NotFoundError: If the user no longer exists
        ForbiddenError: If the policy is not satisfied. The message names the
            required permissions (ANY) or the missing ones (ALL), never the
            permission that would have satisfied the check.
    """
    effective = await effective_permissions(user_id)
    if is_authorized(required, effective, policy):
        return effective

    if policy is Policy.ALL:
        message = f"Access denied. Missing permissions: {', '.join(missing_permissions(required, effective))}"
    else:
        message = f"Access denied. Required permission: {', '.join(required)}"
    raise ForbiddenError(message)
