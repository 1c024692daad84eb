# rbac_admin/schemas/user.py
"""
Pydantic schemas for user management endpoints.
"""
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from .common import Email, OptionalText, Password, PersonName, PhoneNumber, Username

PROFILE_FIELDS = ("nim", "major", "faculty", "room_number", "is_verified")


class ProfileFieldsIn(BaseModel):
    """
    Profile sub-record fields. Only accepted for users holding the profile role.
    """
    nim: OptionalText = None  # Student number, unique when set
    major: OptionalText = None
    faculty: OptionalText = None
    room_number: OptionalText = None
    is_verified: Optional[bool] = None

    def profile_fields(self) -> dict:
        """Profile fields explicitly sent by the client."""
        return {k: getattr(self, k) for k in PROFILE_FIELDS if k in self.model_fields_set}


class UserCreateIn(ProfileFieldsIn):
    """
    Request model for admin user creation.
    fullname defaults to "firstname lastname" when omitted.
    """
    username: Username
    email: Email
    password: Password
    firstname: PersonName
    lastname: PersonName
    fullname: OptionalText = None
    phone_number: PhoneNumber = None
    role_ids: List[int] = Field(default_factory=list, alias="roleIds")

    model_config = {"populate_by_name": True}


class UserUpdateIn(ProfileFieldsIn):
    """
    Request model for updating user information.
    Names are required (as on the edit form); every other field is optional
    and only applied when provided.
    """
    firstname: PersonName
    lastname: PersonName
    username: Optional[Username] = None
    email: Optional[Email] = None
    fullname: OptionalText = None
    phone_number: PhoneNumber = None


class UserRolesIn(BaseModel):
    """Full replacement of a user's roles."""
    role_ids: List[int]


class ResetPasswordIn(BaseModel):
    """
    Request model for admin-initiated password reset.
    """
    password: Password
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("password and confirm_password do not match")
        return self
