"""
Services Module

Domain logic shared by the routers:
- permission_resolver: Effective permissions and ANY/ALL authorization
- impersonation: Start/stop acting as another user
- assignment: Full-replace role and permission assignment
- user_directory: User/role/permission response shapes
"""

from .permission_resolver import (
    Policy,
    authorize,
    effective_permissions,
    is_authorized,
    resolve_user_permissions,
    resolve_user_roles,
)
from .impersonation import (
    ImpersonationResult,
    start_impersonation,
    stop_impersonation,
)
from .assignment import (
    replace_role_permissions,
    replace_user_roles,
)

__all__ = [
    # Permission resolution
    "Policy",
    "authorize",
    "effective_permissions",
    "is_authorized",
    "resolve_user_permissions",
    "resolve_user_roles",
    # Impersonation
    "ImpersonationResult",
    "start_impersonation",
    "stop_impersonation",
    # Assignment
    "replace_role_permissions",
    "replace_user_roles",
]
