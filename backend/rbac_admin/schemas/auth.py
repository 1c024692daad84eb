# rbac_admin/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
Defines request models for registration and login.
"""
from pydantic import BaseModel, field_validator

from .common import Email, Password, PersonName, Username


class RegisterIn(BaseModel):
    """
    Request model for self-registration.
    The email is stored lower-cased; fullname is derived from the names.
    """
    username: Username  # Letters, digits, underscore, dash; at least 3
    email: Email
    password: Password  # At least 8 characters with letters and digits
    firstname: PersonName
    lastname: PersonName


class LoginIn(BaseModel):
    """
    Request model for user login endpoint.
    Users log in with their email address.
    """
    email: str  # Matched case-insensitively
    password: str  # Plain text, verified against the stored hash

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()
