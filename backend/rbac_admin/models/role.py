# rbac_admin/models/role.py
from tortoise import fields, models

class Role(models.Model):
    """
    Named grouping of permissions (e.g. "superadmin", "operator").
    The name is unique across the system.
    """
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=125, unique=True, index=True)
    guard_name = fields.CharField(max_length=125, default="web")
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "roles"
