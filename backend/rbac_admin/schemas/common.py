# rbac_admin/schemas/common.py
"""
Field rules shared by the auth and user schemas.
Each check raises ValueError so pydantic reports it as a field error.
"""
import re
from typing import Annotated, Optional

from pydantic import AfterValidator

from rbac_admin.config import settings

USERNAME_RE = re.compile(r"^[A-Za-z0-9_-]{3,}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def check_username(v: str) -> str:
    v = v.strip()
    if not USERNAME_RE.match(v):
        raise ValueError("must be at least 3 characters of letters, digits, underscore or dash")
    return v


def check_email(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_RE.match(v):
        raise ValueError("invalid email format")
    return v


def check_password(v: str) -> str:
    if len(v) < 8:
        raise ValueError("must be at least 8 characters")
    if not re.search(r"[A-Za-z]", v) or not re.search(r"[0-9]", v):
        raise ValueError("must contain letters and digits")
    return v


def check_name(v: str) -> str:
    v = v.strip()
    if len(v) < 2:
        raise ValueError("must be at least 2 characters")
    return v


def normalize_phone_number(v: str | None, country_code: str | None = None) -> str | None:
    """
    "08123" / "+628123" / "8123" -> "+628123" (with the default country code).
    A leading +62, +1 or 0 is stripped before the country code is prefixed.
    """
    if v is None or not v.strip():
        return None
    number = v.strip()
    for prefix in ("+62", "+1"):
        if number.startswith(prefix):
            number = number[len(prefix):]
            break
    if number.startswith("0"):
        number = number[1:]
    return (country_code or settings.phone_country_code) + number


def strip_or_none(v: str | None) -> str | None:
    if v is None:
        return None
    return v.strip() or None


Username = Annotated[str, AfterValidator(check_username)]
Email = Annotated[str, AfterValidator(check_email)]
Password = Annotated[str, AfterValidator(check_password)]
PersonName = Annotated[str, AfterValidator(check_name)]
PhoneNumber = Annotated[Optional[str], AfterValidator(lambda v: normalize_phone_number(v))]
OptionalText = Annotated[Optional[str], AfterValidator(strip_or_none)]
