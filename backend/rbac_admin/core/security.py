# rbac_admin/core/security.py
"""
Security module for authentication.
Handles password hashing and the session token codec (signed JWT carrying
identity claims and optional impersonation claims).

Tokens are signed, not encrypted: every claim is readable by the holder, so
only ids and names are ever embedded.
"""
import datetime as dt
from dataclasses import dataclass
from typing import Any

import jwt  # PyJWT
from passlib.context import CryptContext

from rbac_admin.config import settings

# Password hashing context
# Argon2 is a modern, secure password hashing algorithm
pwd_context = CryptContext(
    schemes=["argon2"],  # Use Argon2 for password hashing
    deprecated="auto",   # Automatically handle deprecated schemes
)

JWT_ALG = settings.jwt_alg  # JWT signing algorithm (HMAC SHA-256 by default)
ACCESS_TOKEN_TTL = dt.timedelta(minutes=settings.access_token_expire_minutes)
IMPERSONATION_TOKEN_TTL = dt.timedelta(minutes=settings.impersonation_token_expire_minutes)

# Claim names on the wire
CLAIM_ACTOR_ID = "actorId"
CLAIM_IS_IMPERSONATING = "isImpersonating"


class TokenInvalidError(Exception):
    """Raised when a token signature is wrong or its structure does not parse."""


class TokenExpiredError(Exception):
    """Raised when a token is past its embedded expiry."""


@dataclass(frozen=True)
class TokenClaims:
    """
    Identity claims carried by a session token.

    A token is either ordinary (no actor_id, is_impersonating False) or an
    impersonation token (actor_id set AND is_impersonating True). Any other
    combination is rejected by verify_token.
    """
    id: str
    email: str
    username: str
    actor_id: str | None = None
    is_impersonating: bool = False

    @property
    def impersonating(self) -> bool:
        return self.is_impersonating and self.actor_id is not None


def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)
    """
    return pwd_context.hash(plain)

def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a hashed password.

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain, hashed)

def issue_token(claims: TokenClaims, ttl: dt.timedelta, *, secret: str | None = None) -> str:
    """
    Serialize a claim set into a signed, time-limited token.

    Args:
        claims: Identity (and optional impersonation) claims
        ttl: Lifetime of the token; exp = now + ttl
        secret: Signing secret override (defaults to settings.jwt_secret)

    Returns:
        Encoded JWT token string

    Token payload:
        - id, email, username: Subject identity
        - actorId, isImpersonating: Only on impersonation tokens
        - iat: Issued at timestamp
        - exp: Expiration timestamp
    """
    if claims.is_impersonating != (claims.actor_id is not None):
        raise ValueError("impersonation claims must be set together")

    now = dt.datetime.now(dt.timezone.utc)
    payload: dict[str, Any] = {
        "id": claims.id,
        "email": claims.email,
        "username": claims.username,
        "iat": now,
        "exp": now + ttl,
    }
    if claims.is_impersonating:
        payload[CLAIM_ACTOR_ID] = claims.actor_id
        payload[CLAIM_IS_IMPERSONATING] = True
    return jwt.encode(payload, secret or settings.jwt_secret, algorithm=JWT_ALG)

def issue_session_token(claims: TokenClaims) -> str:
    """Ordinary session token (standard TTL)."""
    return issue_token(claims, ACCESS_TOKEN_TTL)

def issue_impersonation_token(claims: TokenClaims) -> str:
    """Impersonation token (short fixed TTL)."""
    return issue_token(claims, IMPERSONATION_TOKEN_TTL)

def _require_str(payload: dict, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise TokenInvalidError(f"missing claim: {key}")
    return value

def verify_token(token: str, *, secret: str | None = None) -> TokenClaims:
    """
    Decode a token, checking signature, structure and expiry.

    Raises:
        TokenExpiredError: If the current time is past the embedded expiry
        TokenInvalidError: If the signature is invalid, the structure does not
            parse, identity claims are missing, or impersonation claims are
            inconsistent (one present without the other)
    """
    try:
        payload = jwt.decode(
            token,
            secret or settings.jwt_secret,
            algorithms=[JWT_ALG],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError from exc
    except jwt.InvalidTokenError as exc:
        raise TokenInvalidError(str(exc)) from exc

    has_actor = CLAIM_ACTOR_ID in payload
    has_flag = CLAIM_IS_IMPERSONATING in payload
    if has_actor != has_flag:
        raise TokenInvalidError("inconsistent impersonation claims")

    actor_id = None
    if has_actor:
        if payload[CLAIM_IS_IMPERSONATING] is not True:
            raise TokenInvalidError("inconsistent impersonation claims")
        actor_id = _require_str(payload, CLAIM_ACTOR_ID)

    return TokenClaims(
        id=_require_str(payload, "id"),
        email=_require_str(payload, "email"),
        username=_require_str(payload, "username"),
        actor_id=actor_id,
        is_impersonating=has_actor,
    )
