# rbac_admin/models/__init__.py
"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: User account and authentication model
- UserProfile: Resident profile sub-record (one-to-one with User)
- Role: Named grouping of permissions
- Permission: Named capability
- UserRole: User <-> Role join record
- RolePermission: Role <-> Permission join record
"""
from .user import User, UserProfile
from .role import Role
from .permission import Permission
from .user_role import UserRole
from .role_permission import RolePermission
