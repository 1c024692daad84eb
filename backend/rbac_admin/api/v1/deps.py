# rbac_admin/api/v1/deps.py
from dataclasses import dataclass, replace

from fastapi import Depends, Header

from rbac_admin.core.errors import UnauthorizedError
from rbac_admin.core.security import TokenClaims, TokenExpiredError, TokenInvalidError, verify_token
from rbac_admin.services.permission_resolver import Policy, authorize


@dataclass(frozen=True)
class ImpersonationInfo:
    """Present on the context when the token was minted by an impersonation."""
    actor_id: str


@dataclass(frozen=True)
class RequestContext:
    """
    Per-request identity, threaded from the authentication dependency through
    the authorization dependency into the route handler.

    Attributes:
        user_id, email, username: The token's subject
        token: The raw bearer token
        impersonation: Original actor when the subject is being impersonated
        permissions: Effective permission names, filled in by require_permissions
    """
    user_id: str
    email: str
    username: str
    token: str
    impersonation: ImpersonationInfo | None = None
    permissions: frozenset[str] | None = None

    @property
    def is_impersonating(self) -> bool:
        return self.impersonation is not None

    @property
    def claims(self) -> TokenClaims:
        return TokenClaims(
            id=self.user_id,
            email=self.email,
            username=self.username,
            actor_id=self.impersonation.actor_id if self.impersonation else None,
            is_impersonating=self.impersonation is not None,
        )


def _bearer_token(authorization: str | None) -> str | None:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return None


def _context_from_token(token: str) -> RequestContext:
    claims = verify_token(token)
    impersonation = ImpersonationInfo(actor_id=claims.actor_id) if claims.impersonating else None
    return RequestContext(
        user_id=claims.id,
        email=claims.email,
        username=claims.username,
        token=token,
        impersonation=impersonation,
    )


async def get_request_context(
    authorization: str | None = Header(default=None),
) -> RequestContext:
    """
    FastAPI dependency that authenticates the request.

    Validates the `Authorization: Bearer <token>` header and binds the token's
    subject (and impersonation info, if any) to a RequestContext. Reads no
    database rows; a deleted subject is caught by the handlers that load it.

    Raises:
        UnauthorizedError (401): "Not authenticated" when no bearer token is sent
        UnauthorizedError (401): "Token has expired" when past expiry
        UnauthorizedError (401): "Invalid token" for bad signatures or claims

    Usage:
        @router.get("/protected")
        async def protected_route(ctx: RequestContext = Depends(get_request_context)):
            return {"user_id": ctx.user_id}
    """
    token = _bearer_token(authorization)
    if not token:
        raise UnauthorizedError("Not authenticated")
    try:
        return _context_from_token(token)
    except TokenExpiredError:
        raise UnauthorizedError("Token has expired", code="TOKEN_EXPIRED")
    except TokenInvalidError:
        raise UnauthorizedError("Invalid token", code="TOKEN_INVALID")


async def get_optional_context(
    authorization: str | None = Header(default=None),
) -> RequestContext | None:
    """Like get_request_context, but anonymous (None) instead of 401."""
    token = _bearer_token(authorization)
    if not token:
        return None
    try:
        return _context_from_token(token)
    except (TokenExpiredError, TokenInvalidError):
        return None


def require_permissions(*names: str, policy: Policy = Policy.ANY):
    """
    Build a dependency that authenticates and then enforces a permission policy.

    Permissions are re-resolved from the database for the context's user on
    every request; nothing the client sends about permissions is trusted.

    Usage:
        @router.get("/users")
        async def list_users(ctx: RequestContext = Depends(require_permissions("view_user", "view_any_user"))):
            ...
    """
    required = list(names)

    async def _require(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        permissions = await authorize(ctx.user_id, required, policy)
        return replace(ctx, permissions=permissions)

    return _require
