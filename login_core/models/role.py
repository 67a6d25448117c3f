# =============================================================================
# login_core/models/role.py
# Role Record and Default Role Seed
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass
class RoleRecord:
    """Authorization role. Ids 1-3 are reserved for the seeded defaults."""
    id: Optional[int] = None
    name: str = ""
    description: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> RoleRecord:
        return cls(id=row["id"], name=row["name"], description=row["description"])

    def to_remote(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "description": self.description}

    @classmethod
    def from_remote(cls, data: Mapping[str, Any]) -> RoleRecord:
        return cls(id=int(data["id"]), name=data["name"], description=data.get("description"))

    def same_content(self, other: Optional[RoleRecord]) -> bool:
        return (
            other is not None
            and self.id == other.id
            and self.name == other.name
            and (self.description or None) == (other.description or None)
        )


DEFAULT_ROLES: Tuple[RoleRecord, ...] = (
    RoleRecord(1, "User", "Standard user with basic permissions"),
    RoleRecord(2, "Admin", "Administrator with elevated permissions (e.g., view logs, manage users)"),
    RoleRecord(3, "Guest", "Guest with read-only access"),
)

RESERVED_ROLE_IDS = frozenset(role.id for role in DEFAULT_ROLES)
