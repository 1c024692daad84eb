# rbac_admin/api/v1/routers/users.py
import datetime as dt
import logging
import math
import uuid

from fastapi import APIRouter, Depends, Query, status
from tortoise.expressions import Q
from tortoise.transactions import in_transaction

from rbac_admin.api.v1.deps import RequestContext, get_request_context, require_permissions
from rbac_admin.config import settings
from rbac_admin.core.errors import BadRequestError, ConflictError, NotFoundError, ValidationError
from rbac_admin.core.responses import ok
from rbac_admin.core.security import hash_password
from rbac_admin.models import Role, User, UserProfile, UserRole
from rbac_admin.schemas.user import ResetPasswordIn, UserCreateIn, UserRolesIn, UserUpdateIn
from rbac_admin.services.assignment import replace_user_roles
from rbac_admin.services.permission_resolver import Policy, resolve_user_roles
from rbac_admin.services.user_directory import role_to_dict, user_profile, user_to_dict

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/users", tags=["users"])

can_view = require_permissions("view_user", "view_any_user")
can_update = require_permissions("update_user")


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


async def _get_user(user_id: uuid.UUID) -> User:
    u = await User.get_or_none(id=user_id)
    if not u:
        raise NotFoundError("User not found")
    return u


def _listing_item(u: User) -> dict:
    data = user_to_dict(u)
    links = sorted(u.role_links, key=lambda link: link.id)
    data["roles"] = [role_to_dict(link.role) for link in links]
    return data


async def _paginate(qs, page: int, limit: int) -> dict:
    total = await qs.count()
    rows = await qs.offset((page - 1) * limit).limit(limit).prefetch_related("role_links__role")
    return {
        "users": [_listing_item(u) for u in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if total else 0,
        },
    }


def _search(qs, search: str | None):
    if search:
        qs = qs.filter(
            Q(username__icontains=search)
            | Q(email__icontains=search)
            | Q(firstname__icontains=search)
            | Q(lastname__icontains=search)
            | Q(fullname__icontains=search)
        )
    return qs


def _has_profile_role(role_names: list[str], profile_fields: dict) -> bool:
    """
    True when the user carries the profile role. Profile values sent for any
    other user are rejected.
    """
    has_profile_role = settings.profile_role in role_names
    sent = {k: v for k, v in profile_fields.items() if v is not None}
    if sent and not has_profile_role:
        raise ValidationError(f"Profile fields are only accepted for users with the {settings.profile_role} role")
    return has_profile_role


async def _check_nim_free(nim: str | None, user_id=None) -> None:
    if not nim:
        return
    qs = UserProfile.filter(nim=nim)
    if user_id is not None:
        qs = qs.exclude(user_id=user_id)
    if await qs.exists():
        raise ConflictError("NIM already in use")


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(default=None, description="Search username/email/names"),
    ctx: RequestContext = Depends(can_view),
):
    """
    Paginated list of active (not soft-deleted) users, newest first.

    Returns:
        dict: Envelope with `users` (each with its roles) and
        `pagination` {page, limit, total, totalPages}
    """
    qs = _search(User.filter(deleted_at__isnull=True), search).order_by("-created_at")
    return ok("Users retrieved", await _paginate(qs, page, limit))


@router.get("/deleted")
async def list_deleted_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(default=None),
    ctx: RequestContext = Depends(can_view),
):
    """Paginated list of soft-deleted users, most recently deleted first."""
    qs = _search(User.filter(deleted_at__isnull=False), search).order_by("-deleted_at")
    return ok("Deleted users retrieved", await _paginate(qs, page, limit))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreateIn,
    ctx: RequestContext = Depends(require_permissions("create_user", policy=Policy.ALL)),
):
    """
    Create a user (admin).

    Optional `roleIds` are assigned in the given order. Profile fields are
    stored only when one of the roles is the profile role; `nim` must be
    unique.

    Raises:
        ConflictError (409): Email, username or nim already in use
        BadRequestError (400): Some role ids do not exist
        ValidationError (400): Profile fields sent without the profile role
    """
    if await User.filter(email=body.email).exists():
        raise ConflictError("Email already in use")
    if await User.filter(username=body.username).exists():
        raise ConflictError("Username already in use")

    role_ids = list(dict.fromkeys(body.role_ids))
    roles = {r.id: r for r in await Role.filter(id__in=role_ids)}
    if len(roles) != len(role_ids):
        raise BadRequestError("Some roles were not found")

    profile = body.profile_fields()
    has_profile_role = _has_profile_role([r.name for r in roles.values()], profile)
    if has_profile_role:
        await _check_nim_free(profile.get("nim"))

    async with in_transaction() as conn:
        u = await User.create(
            username=body.username,
            email=body.email,
            password_hash=hash_password(body.password),
            firstname=body.firstname,
            lastname=body.lastname,
            fullname=body.fullname or f"{body.firstname} {body.lastname}",
            phone_number=body.phone_number,
            using_db=conn,
        )
        if role_ids:
            await UserRole.bulk_create([UserRole(user_id=u.id, role_id=rid) for rid in role_ids], using_db=conn)
        if has_profile_role:
            await UserProfile.create(
                user_id=u.id,
                nim=profile.get("nim"),
                major=profile.get("major"),
                faculty=profile.get("faculty"),
                room_number=profile.get("room_number"),
                is_verified=bool(profile.get("is_verified")),
                using_db=conn,
            )

    logger.info("[users] created user=%s by=%s", u.id, ctx.user_id)
    return ok("User created", await user_profile(u))


@router.get("/{user_id}")
async def get_user(user_id: uuid.UUID, ctx: RequestContext = Depends(can_view)):
    """User detail with roles, effective permissions and profile."""
    u = await _get_user(user_id)
    return ok("User retrieved", await user_profile(u))


@router.put("/{user_id}")
async def update_user(user_id: uuid.UUID, body: UserUpdateIn, ctx: RequestContext = Depends(can_update)):
    """
    Update a user's details and (for the profile role) the profile sub-record.

    Raises:
        NotFoundError (404): User not found
        ConflictError (409): Email, username or nim already in use
        ValidationError (400): Profile fields sent without the profile role
    """
    u = await _get_user(user_id)
    sent = body.model_fields_set

    if body.email and body.email != u.email:
        if await User.filter(email=body.email).exclude(id=u.id).exists():
            raise ConflictError("Email already in use")
        u.email = body.email
    if body.username and body.username != u.username:
        if await User.filter(username=body.username).exclude(id=u.id).exists():
            raise ConflictError("Username already in use")
        u.username = body.username

    profile = body.profile_fields()
    role_names = [r.name for r in await resolve_user_roles(u.id)]
    has_profile_role = _has_profile_role(role_names, profile)
    if has_profile_role:
        await _check_nim_free(profile.get("nim"), user_id=u.id)

    u.firstname = body.firstname
    u.lastname = body.lastname
    if "fullname" in sent:
        u.fullname = body.fullname
    if "phone_number" in sent:
        u.phone_number = body.phone_number

    async with in_transaction() as conn:
        await u.save(using_db=conn)
        if has_profile_role and profile:
            record = await UserProfile.get_or_none(user_id=u.id, using_db=conn)
            if record is None:
                await UserProfile.create(user_id=u.id, using_db=conn, **{
                    **profile, "is_verified": bool(profile.get("is_verified")),
                })
            else:
                for key, value in profile.items():
                    setattr(record, key, bool(value) if key == "is_verified" else value)
                await record.save(using_db=conn)

    return ok("User updated", await user_profile(u))


@router.put("/{user_id}/roles")
async def update_user_roles(user_id: uuid.UUID, body: UserRolesIn, ctx: RequestContext = Depends(can_update)):
    """
    Replace all of a user's roles with `role_ids` (delete + insert in one
    transaction).
    """
    roles = await replace_user_roles(user_id, body.role_ids)
    logger.info("[users] roles replaced user=%s roles=%s by=%s", user_id, [r.name for r in roles], ctx.user_id)
    return ok("User roles updated", {"roles": [role_to_dict(r) for r in roles]})


@router.delete("/{user_id}")
async def delete_user(
    user_id: uuid.UUID,
    ctx: RequestContext = Depends(require_permissions("delete_user", "delete_any_user")),
):
    """
    Soft delete: marks deleted_at / deleted_by; the row is kept.

    Raises:
        NotFoundError (404): User not found
        BadRequestError (400): User already deleted
    """
    u = await _get_user(user_id)
    if u.is_deleted:
        raise BadRequestError("User already deleted")
    u.deleted_at = utc_now()
    u.deleted_by = uuid.UUID(ctx.user_id)
    await u.save(update_fields=["deleted_at", "deleted_by", "updated_at"])
    logger.info("[users] soft-deleted user=%s by=%s", u.id, ctx.user_id)
    return ok("User deleted")


@router.delete("/{user_id}/force")
async def force_delete_user(
    user_id: uuid.UUID,
    ctx: RequestContext = Depends(require_permissions("force_delete_user", "force_delete_any_user")),
):
    """Hard delete: removes the user with its role assignments and profile."""
    u = await _get_user(user_id)
    async with in_transaction() as conn:
        await UserRole.filter(user_id=u.id).using_db(conn).delete()
        await UserProfile.filter(user_id=u.id).using_db(conn).delete()
        await u.delete(using_db=conn)
    logger.warning("[users] force-deleted user=%s by=%s", user_id, ctx.user_id)
    return ok("User permanently deleted")


@router.post("/{user_id}/verify-email")
async def verify_email(user_id: uuid.UUID, ctx: RequestContext = Depends(get_request_context)):
    u = await _get_user(user_id)
    u.email_verified_at = utc_now()
    await u.save(update_fields=["email_verified_at", "updated_at"])
    return ok("Email verified", {"id": str(u.id), "email_verified_at": u.email_verified_at.isoformat()})


@router.post("/{user_id}/send-verification-email")
async def send_verification_email(user_id: uuid.UUID, ctx: RequestContext = Depends(get_request_context)):
    # TODO: hand off to a mail sender once one is configured; acknowledged only.
    u = await _get_user(user_id)
    return ok("Verification email sent", {"email": u.email})


@router.post("/{user_id}/reset-password")
async def reset_password(user_id: uuid.UUID, body: ResetPasswordIn, ctx: RequestContext = Depends(can_update)):
    """
    Admin password reset (with confirmation). Deleted users are refused.
    """
    u = await _get_user(user_id)
    if u.is_deleted:
        raise BadRequestError("Cannot reset the password of a deleted user")
    u.password_hash = hash_password(body.password)
    await u.save(update_fields=["password_hash", "updated_at"])
    return ok("Password reset", {"id": str(u.id)})
