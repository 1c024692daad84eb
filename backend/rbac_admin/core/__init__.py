# rbac_admin/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Default roles/permissions and superadmin creation
- db: Database configuration and connection management
- errors: Application error taxonomy
- permission_catalog: Display grouping of permission names
- responses: Response envelope helpers
- security: Password hashing and the session token codec
"""
