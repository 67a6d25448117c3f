# =============================================================================
# login_core/auth/validation.py
# Input Validation for Account Flows
# =============================================================================
"""
Validation runs before any storage call. Every failure raises
ValidationError naming the offending field.
"""

from __future__ import annotations
import re

from login_core.errors import ValidationError
from .passwords import MAX_PASSWORD_BYTES

MIN_PASSWORD_LENGTH = 6

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _require(value: str, field: str, label: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} is required.", field=field)
    return str(value).strip()


def validate_email(email: str) -> str:
    """Return the normalized (trimmed, lower-cased) email."""
    email = _require(email, "email", "Email")
    if not _EMAIL_PATTERN.match(email):
        raise ValidationError("Email address is not valid.", field="email")
    return email.lower()


def validate_new_password(password: str, confirm_password: str, field: str = "password") -> None:
    if not password or not password.strip():
        raise ValidationError("Password is required.", field=field)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.",
            field=field,
        )
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes long.",
            field=field,
        )
    if password != confirm_password:
        raise ValidationError("Passwords do not match.", field="confirm_password")


def validate_registration(
    name: str,
    lastname: str,
    email: str,
    password: str,
    confirm_password: str,
) -> str:
    """Validate registration input. Returns the normalized email."""
    _require(name, "name", "Name")
    _require(lastname, "lastname", "Last name")
    email = validate_email(email)
    validate_new_password(password, confirm_password)
    return email


def validate_sign_in(email: str, password: str) -> str:
    """Validate sign-in input. Returns the normalized email."""
    email = _require(email, "email", "Email").lower()
    if not password:
        raise ValidationError("Password is required.", field="password")
    return email


def validate_password_change(old_password: str, new_password: str, confirm_password: str) -> None:
    if not old_password:
        raise ValidationError("Current password is required.", field="old_password")
    validate_new_password(new_password, confirm_password, field="new_password")
    if new_password == old_password:
        raise ValidationError(
            "New password must be different from the current password.",
            field="new_password",
        )
