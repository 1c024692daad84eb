# rbac_admin/models/user_role.py
from tortoise import fields, models

class UserRole(models.Model):
    """Join record: one User holds one Role."""
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField("models.User", related_name="role_links", on_delete=fields.CASCADE)
    role = fields.ForeignKeyField("models.Role", related_name="user_links", on_delete=fields.CASCADE)

    class Meta:
        table = "user_roles"
        unique_together = (("user", "role"),)
