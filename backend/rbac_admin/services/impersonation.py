# rbac_admin/services/impersonation.py
"""
Impersonation controller.

Lets a user holding the elevated role act as another user, and later return
to their own identity. No server-side session is kept: the impersonation
token itself carries the original actor's id (``actorId``) next to the
``isImpersonating`` flag, and stopping re-derives the actor's ordinary token
from that claim.

Client contract: the admin panel keeps its pre-impersonation token and the
path it was on, so it can restore both after stopping.
"""
import logging
from dataclasses import dataclass, field

from rbac_admin.config import settings
from rbac_admin.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from rbac_admin.core.security import TokenClaims, issue_impersonation_token, issue_session_token
from rbac_admin.models import User
from rbac_admin.services.permission_resolver import resolve_user_roles
from rbac_admin.services.user_directory import public_identity, user_profile

logger = logging.getLogger("uvicorn.error")


@dataclass
class ImpersonationResult:
    user: dict
    token: str
    impersonated_by: dict | None = field(default=None)

    def to_dict(self) -> dict:
        data = {"user": self.user, "token": self.token}
        if self.impersonated_by is not None:
            data["impersonatedBy"] = self.impersonated_by
        return data


async def has_elevated_role(user_id) -> bool:
    """Role-name check, deliberately independent of the permission system."""
    roles = await resolve_user_roles(user_id)
    return any(role.name == settings.superadmin_role for role in roles)


async def start_impersonation(actor_id, target_id, *, actor_is_impersonating: bool = False) -> ImpersonationResult:
    """
    Mint a token whose subject is the target and which embeds the actor.

    Checks run in this order:
        1. target exists (NotFoundError)
        2. target is not soft-deleted (ConflictError)
        3. actor exists (NotFoundError)
        4. actor holds the elevated role (ForbiddenError)
        5. actor is not already impersonating (ConflictError)

    Returns:
        The target's full profile, the impersonation token and the actor's
        public identity.
    """
    target = await User.get_or_none(id=target_id)
    if not target:
        raise NotFoundError("User not found")
    if target.is_deleted:
        raise ConflictError("Cannot impersonate a deleted account")

    actor = await User.get_or_none(id=actor_id)
    if not actor:
        raise NotFoundError("Admin not found")
    if not await has_elevated_role(actor.id):
        raise ForbiddenError(f"Only users with the {settings.superadmin_role} role can impersonate")

    # No nesting: one actor per token.
    if actor_is_impersonating:
        raise ConflictError("Already impersonating; stop the current session first")

    token = issue_impersonation_token(TokenClaims(
        id=str(target.id),
        email=target.email,
        username=target.username,
        actor_id=str(actor.id),
        is_impersonating=True,
    ))
    logger.info("[impersonation] start actor=%s target=%s", actor.id, target.id)
    return ImpersonationResult(
        user=await user_profile(target),
        token=token,
        impersonated_by=public_identity(actor),
    )


async def stop_impersonation(claims: TokenClaims) -> ImpersonationResult:
    """
    Return to the actor embedded in an impersonation token.

    The actor's elevated role is not re-checked; a revoked role is only
    logged.

    Raises:
        BadRequestError: If the claims carry no impersonation
        NotFoundError: If the embedded actor no longer exists
    """
    if not claims.impersonating:
        raise BadRequestError("Not currently impersonating")

    actor = await User.get_or_none(id=claims.actor_id)
    if not actor:
        raise NotFoundError("Admin not found")

    if not await has_elevated_role(actor.id):
        logger.warning(
            "[impersonation] actor=%s no longer holds %s; stopping anyway",
            actor.id, settings.superadmin_role,
        )

    token = issue_session_token(TokenClaims(id=str(actor.id), email=actor.email, username=actor.username))
    logger.info("[impersonation] stop actor=%s subject=%s", actor.id, claims.id)
    return ImpersonationResult(user=await user_profile(actor), token=token)
