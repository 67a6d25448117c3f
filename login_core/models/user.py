# =============================================================================
# login_core/models/user.py
# User Record and Role Enumeration
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, Mapping, Optional

from login_core.errors import ValidationError


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class UserRole(IntEnum):
    """User roles. Values double as ids in the roles table."""
    USER = 1
    ADMIN = 2
    GUEST = 3

    @classmethod
    def coerce(cls, value: Any) -> UserRole:
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise ValidationError(f"Unknown role: {value!r}", field="role")


@dataclass
class UserRecord:
    """
    One application user.

    `password` is the plaintext, only present transiently during
    registration, login and password changes. `password_hash` is what the
    local store persists.
    """
    id: Optional[int] = None
    name: str = ""
    lastname: str = ""
    username: str = ""
    email: str = ""
    password: Optional[str] = field(default=None, repr=False, compare=False)
    password_hash: str = field(default="", repr=False)
    remote_uid: Optional[str] = None
    role: UserRole = UserRole.USER
    needs_sync: bool = True
    pending_password_change: bool = False
    old_password_hash: Optional[str] = field(default=None, repr=False)
    registration_date: Optional[str] = None
    last_modified: Optional[str] = None
    password_changed_date: Optional[str] = None

    def __post_init__(self):
        self.role = UserRole.coerce(self.role)
        if not self.username:
            self.username = self.email

    @property
    def display_name(self) -> str:
        return self.name or self.email or "Unknown User"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def copy(self, **changes) -> UserRecord:
        return replace(self, **changes)

    # =========================================================================
    # CONVERSIONS
    # =========================================================================

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> UserRecord:
        """Build a record from a sqlite3.Row of the users table."""
        return cls(
            id=row["id"],
            name=row["name"] or "",
            lastname=row["lastname"] or "",
            username=row["username"] or "",
            email=row["email"],
            password_hash=row["password"] or "",
            remote_uid=row["firebase_uid"] or None,
            role=row["role_id"],
            needs_sync=bool(row["needs_sync"]),
            pending_password_change=bool(row["pending_password_change"]),
            old_password_hash=row["old_password_hash"] or None,
            registration_date=row["registration_date"],
            last_modified=row["last_modified"],
            password_changed_date=row["password_changed_date"],
        )

    def to_remote_profile(self) -> Dict[str, Any]:
        """Profile document for the remote users table (no sync bookkeeping)."""
        return {
            "id": self.remote_uid,
            "local_id": self.id,
            "name": self.name,
            "lastname": self.lastname,
            "email": self.email,
            "role": int(self.role),
            "created_at": self.registration_date or utc_now(),
            "updated_at": utc_now(),
        }

    @classmethod
    def from_remote_profile(cls, profile: Mapping[str, Any]) -> UserRecord:
        """Build a record from a remote profile document."""
        return cls(
            id=profile.get("local_id"),
            name=profile.get("name") or "",
            lastname=profile.get("lastname") or "",
            email=profile.get("email") or "",
            remote_uid=profile.get("id"),
            role=profile.get("role") or UserRole.USER,
            needs_sync=False,
            registration_date=profile.get("created_at"),
            last_modified=profile.get("updated_at"),
        )
