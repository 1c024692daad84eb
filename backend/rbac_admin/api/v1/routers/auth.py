# rbac_admin/api/v1/routers/auth.py
import logging
import uuid

from fastapi import APIRouter, Depends, status

from rbac_admin.api.v1.deps import RequestContext, get_optional_context, get_request_context
from rbac_admin.core.errors import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError
from rbac_admin.core.responses import ok
from rbac_admin.core.security import TokenClaims, hash_password, issue_session_token, verify_password
from rbac_admin.models import User
from rbac_admin.schemas.auth import LoginIn, RegisterIn
from rbac_admin.services.impersonation import start_impersonation, stop_impersonation
from rbac_admin.services.user_directory import public_identity, user_profile, user_to_dict

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn):
    """
    Register a new user account.

    The password is hashed before storage, the email stored lower-cased and
    fullname derived as "firstname lastname". No role is assigned.

    Returns:
        dict: Envelope with the created user (never the password hash)

    Raises:
        ConflictError (409): Email or username already registered
    """
    if await User.filter(email=body.email).exists():
        raise ConflictError("Email already in use")
    if await User.filter(username=body.username).exists():
        raise ConflictError("Username already in use")

    u = await User.create(
        username=body.username,
        email=body.email,
        password_hash=hash_password(body.password),
        firstname=body.firstname,
        lastname=body.lastname,
        fullname=f"{body.firstname} {body.lastname}",
    )
    return ok("Registration successful", user_to_dict(u))


@router.post("/login")
async def login(payload: LoginIn):
    """
    Authenticate by email and password and issue an ordinary session token.

    Returns:
        dict: Envelope with:
            - user: Full profile (roles and permissions for UI gating)
            - token: Bearer token for subsequent requests

    Raises:
        UnauthorizedError (401): Unknown email or wrong password
        ForbiddenError (403): Account has been soft-deleted
    """
    user = await User.get_or_none(email=payload.email)
    if not user:
        raise UnauthorizedError("Incorrect email or password", code="AUTH_INVALID_CREDENTIALS")
    if user.is_deleted:
        raise ForbiddenError("Account has been deactivated", code="ACCOUNT_DEACTIVATED")
    if not verify_password(payload.password, user.password_hash):
        raise UnauthorizedError("Incorrect email or password", code="AUTH_INVALID_CREDENTIALS")

    token = issue_session_token(TokenClaims(id=str(user.id), email=user.email, username=user.username))
    return ok("Login successful", {"user": await user_profile(user), "token": token})


@router.post("/logout")
async def logout(ctx: RequestContext | None = Depends(get_optional_context)):
    """
    Acknowledge logout. The client discards its token; tokens are not
    revoked server-side and stay valid until they expire.
    """
    if ctx is not None:
        logger.info("[auth] logout user=%s", ctx.user_id)
    return ok("Logout successful")


@router.get("/me")
async def me(ctx: RequestContext = Depends(get_request_context)):
    """
    Current subject's profile.

    When the token is an impersonation token the payload also carries
    `impersonatedBy` (the actor's id, username and email) and
    `isImpersonating: true`.

    Raises:
        NotFoundError (404): The subject no longer exists
    """
    user = await User.get_or_none(id=ctx.user_id)
    if not user:
        raise NotFoundError("User not found")

    data = await user_profile(user)
    data["isImpersonating"] = ctx.is_impersonating
    if ctx.impersonation:
        actor = await User.get_or_none(id=ctx.impersonation.actor_id)
        if actor:
            data["impersonatedBy"] = public_identity(actor)
    return ok("User data retrieved", data)


@router.post("/impersonate/{user_id}")
async def impersonate(user_id: uuid.UUID, ctx: RequestContext = Depends(get_request_context)):
    """
    Start acting as another user. The caller must hold the superadmin role.

    Returns:
        dict: Envelope with the target's profile, the impersonation token and
        `impersonatedBy` (the caller's public identity)

    Raises:
        NotFoundError (404): Target or caller not found
        ConflictError (409): Target is soft-deleted, or the caller is
            already impersonating
        ForbiddenError (403): Caller lacks the superadmin role
    """
    result = await start_impersonation(ctx.user_id, user_id, actor_is_impersonating=ctx.is_impersonating)
    return ok("Impersonation started", result.to_dict())


@router.post("/stop-impersonate")
async def stop_impersonate(ctx: RequestContext = Depends(get_request_context)):
    """
    Return to the original actor using the claim embedded in the current
    impersonation token. Issues a fresh ordinary token for the actor.

    Raises:
        BadRequestError (400): The current token is not an impersonation token
        NotFoundError (404): The original actor no longer exists
    """
    result = await stop_impersonation(ctx.claims)
    return ok("Impersonation stopped", result.to_dict())
