# rbac_admin/models/user.py
"""
Database models for users.
Represents a user account in the system, containing authentication credentials,
profile information and the soft-delete marker.
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many UserRole links (via related_name="role_links")
    - Has at most one UserProfile (via related_name="profile")

    Lifecycle:
    - Soft delete sets deleted_at/deleted_by; the row stays in storage
    - Hard delete removes the row together with its role links and profile

    Security:
    - Password is stored as a hash (never store plain text passwords)
    - Username and email must be unique across all users
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    username = fields.CharField(
        max_length=256,
        unique=True,
        index=True
    )  # User login name (must be unique, indexed for fast lookups)
    email = fields.CharField(max_length=256, unique=True, index=True)  # Always stored lower-cased
    password_hash = fields.CharField(max_length=255)  # Hashed password (argon2)
    firstname = fields.CharField(max_length=128)
    lastname = fields.CharField(max_length=128)
    fullname = fields.CharField(max_length=256, null=True)
    phone_number = fields.CharField(max_length=32, null=True)
    email_verified_at = fields.DatetimeField(null=True)

    deleted_at = fields.DatetimeField(null=True)  # Soft-delete marker
    deleted_by = fields.UUIDField(null=True)  # Id of the user who soft-deleted this account

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"  # Database table name

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class UserProfile(models.Model):
    """
    Profile sub-record for residents (users holding the profile role).
    """
    id = fields.IntField(pk=True)
    user = fields.OneToOneField("models.User", related_name="profile", on_delete=fields.CASCADE)
    nim = fields.CharField(max_length=64, null=True, unique=True)  # Student number
    major = fields.CharField(max_length=128, null=True)
    faculty = fields.CharField(max_length=128, null=True)
    room_number = fields.CharField(max_length=32, null=True)
    is_verified = fields.BooleanField(default=False)

    class Meta:
        table = "user_profiles"
