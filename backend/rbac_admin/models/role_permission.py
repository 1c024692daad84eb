# rbac_admin/models/role_permission.py
from tortoise import fields, models

class RolePermission(models.Model):
    """Join record: one Role grants one Permission."""
    id = fields.IntField(pk=True)
    role = fields.ForeignKeyField("models.Role", related_name="permission_links", on_delete=fields.CASCADE)
    permission = fields.ForeignKeyField("models.Permission", related_name="role_links", on_delete=fields.CASCADE)

    class Meta:
        table = "role_permissions"
        unique_together = (("role", "permission"),)
