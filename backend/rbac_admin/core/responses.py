# rbac_admin/core/responses.py
"""
Response envelope shared by every endpoint:
{"success": bool, "message": str, "data"?: T, "error"?: str}
"""
from typing import Any


def ok(message: str, data: Any = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        payload["data"] = data
    return payload


def error_payload(message: str, error: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": False, "message": message}
    if error:
        payload["error"] = error
    return payload
