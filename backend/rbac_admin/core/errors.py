# rbac_admin/core/errors.py
"""
Application error taxonomy.

Errors are raised at the point of detection and translated into the response
envelope ``{"success": false, "message": ..., "error": ...}`` by the exception
handlers registered in ``rbac_admin.main``.
"""
from typing import Any

from fastapi import status


class AppError(Exception):
    code: str = "APP_ERROR"
    message: str = "Application error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str | None = None

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        detail: str | None = None,
    ):
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        if detail is not None:
            self.detail = detail

        super().__init__(self.message)


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    message = "Validation failed"
    status_code = status.HTTP_400_BAD_REQUEST


class BadRequestError(AppError):
    code = "BAD_REQUEST"
    message = "Bad request"
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(AppError):
    code = "UNAUTHORIZED"
    message = "Not authenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AppError):
    code = "FORBIDDEN"
    message = "Insufficient permissions"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    code = "NOT_FOUND"
    message = "Resource not found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    code = "CONFLICT"
    message = "Resource conflict"
    status_code = status.HTTP_409_CONFLICT


class InternalError(AppError):
    code = "INTERNAL_ERROR"
    message = "Internal server error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


SAFE_HTTP_MESSAGES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: BadRequestError.message,
    status.HTTP_401_UNAUTHORIZED: UnauthorizedError.message,
    status.HTTP_403_FORBIDDEN: ForbiddenError.message,
    status.HTTP_404_NOT_FOUND: NotFoundError.message,
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method not allowed",
    status.HTTP_409_CONFLICT: ConflictError.message,
}


def format_field_errors(errors: list[dict[str, Any]]) -> str:
    """
    Flatten pydantic error dicts into "field: message, field: message".
    The location prefix ("body", "query", "path") is dropped.
    """
    parts = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "header")]
        field = ".".join(loc) or "request"
        msg = str(err.get("msg", "invalid value"))
        # pydantic prefixes custom validator messages with "Value error, "
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        parts.append(f"{field}: {msg}")
    return ", ".join(parts)
