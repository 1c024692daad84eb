# rbac_admin/models/permission.py
from tortoise import fields, models

class Permission(models.Model):
    """
    Named capability, by convention "action_resource" or "action_any_resource"
    (e.g. "view_user", "delete_any_user"). The name is unique.
    """
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=125, unique=True, index=True)
    guard_name = fields.CharField(max_length=125, default="web")
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "permissions"
