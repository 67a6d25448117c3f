# =============================================================================
# login_core/auth/passwords.py
# Password Hashing (bcrypt)
# =============================================================================

from __future__ import annotations
from typing import Optional

import bcrypt

# bcrypt only reads the first 72 bytes; newer releases reject longer input
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        str: Hashed password ('$2b$12$...')
    """
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: Optional[str], password_hash: Optional[str]) -> bool:
    """Check a plain text password against a stored bcrypt hash."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # Not a bcrypt hash
        return False
