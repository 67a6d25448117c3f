# =============================================================================
# login_core/auth/__init__.py
# Password Hashing, Input Validation and Session
# =============================================================================

from .passwords import hash_password, verify_password
from .validation import (
    MIN_PASSWORD_LENGTH,
    MAX_PASSWORD_BYTES,
    validate_email,
    validate_registration,
    validate_sign_in,
    validate_password_change,
)
from .session import UserSession

__all__ = [
    "hash_password",
    "verify_password",
    "MIN_PASSWORD_LENGTH",
    "MAX_PASSWORD_BYTES",
    "validate_email",
    "validate_registration",
    "validate_sign_in",
    "validate_password_change",
    "UserSession",
]
