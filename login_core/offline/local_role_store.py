# =============================================================================
# login_core/offline/local_role_store.py
# Roles Table Access
# =============================================================================

from __future__ import annotations
from typing import List, Optional
import logging

from login_core.models import RoleRecord, utc_now
from .local_database import LocalDatabase

logger = logging.getLogger(__name__)

TABLE = "roles"


class LocalRoleStore:
    """Local roles table. Ids are explicit, never auto-generated."""

    def __init__(self, db: LocalDatabase):
        self.db = db

    def insert(self, role: RoleRecord, needs_sync: bool = True) -> bool:
        with self.db.transaction(table=TABLE, operation="insert") as conn:
            conn.execute(
                "INSERT INTO roles (id, name, description, needs_sync, last_modified) "
                "VALUES (?, ?, ?, ?, ?)",
                (role.id, role.name, role.description, int(needs_sync), utc_now()),
            )
        return True

    def update(self, role: RoleRecord, needs_sync: bool = True) -> bool:
        return self.db.execute(
            "UPDATE roles SET name = ?, description = ?, needs_sync = ?, last_modified = ? "
            "WHERE id = ?",
            (role.name, role.description, int(needs_sync), utc_now(), role.id),
            table=TABLE,
            operation="update",
        ) > 0

    def delete(self, role_id: int) -> bool:
        return self.db.execute(
            "DELETE FROM roles WHERE id = ?", (role_id,), table=TABLE, operation="delete"
        ) > 0

    def fetch(self, role_id: int) -> Optional[RoleRecord]:
        row = self.db.query_one("SELECT * FROM roles WHERE id = ?", (role_id,), table=TABLE)
        return RoleRecord.from_row(row) if row else None

    def fetch_by_name(self, name: str) -> Optional[RoleRecord]:
        row = self.db.query_one(
            "SELECT * FROM roles WHERE name = ? COLLATE NOCASE", (name,), table=TABLE
        )
        return RoleRecord.from_row(row) if row else None

    def fetch_all(self) -> List[RoleRecord]:
        rows = self.db.query("SELECT * FROM roles ORDER BY id", table=TABLE)
        return [RoleRecord.from_row(row) for row in rows]

    def needs_sync(self, role_id: int) -> bool:
        return bool(self.db.scalar("SELECT needs_sync FROM roles WHERE id = ?", (role_id,), table=TABLE))

    def pending_sync_count(self) -> int:
        return self.db.scalar("SELECT COUNT(*) FROM roles WHERE needs_sync = 1", table=TABLE) or 0

    def next_id(self) -> int:
        return (self.db.scalar("SELECT MAX(id) FROM roles", table=TABLE) or 0) + 1

    def mark_as_synced(self, role_id: int) -> bool:
        return self.db.execute(
            "UPDATE roles SET needs_sync = 0 WHERE id = ?",
            (role_id,),
            table=TABLE,
            operation="mark_as_synced",
        ) > 0

    def upsert_from_sync(self, role: RoleRecord) -> bool:
        """
        Apply a remote role. Returns True only when a row was inserted or
        actually changed.
        """
        existing = self.fetch(role.id)
        if existing is None:
            self.insert(role, needs_sync=False)
            logger.debug(f"Downloaded new role {role.id} ({role.name})")
            return True
        if existing.same_content(role):
            return False
        self.update(role, needs_sync=False)
        logger.debug(f"Updated role {role.id} from remote")
        return True
