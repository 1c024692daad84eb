# rbac_admin/schemas/role.py
"""
Pydantic schemas for role management endpoints.
"""
from typing import Annotated, List

from pydantic import AfterValidator, BaseModel


def check_label(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


Label = Annotated[str, AfterValidator(check_label)]


class RoleUpdateIn(BaseModel):
    """Rename a role or change its guard. The name must stay unique."""
    name: Label
    guard_name: Label


class RolePermissionsIn(BaseModel):
    """Full replacement of a role's permissions."""
    permission_ids: List[int]
