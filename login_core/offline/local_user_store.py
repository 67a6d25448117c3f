# =============================================================================
# login_core/offline/local_user_store.py
# Users Table Access
# =============================================================================
"""
LocalUserStore - CRUD and sync bookkeeping for the local users table.

Missing rows come back as False/None. Constraint violations raise
ConflictError, other database failures raise StorageError.
"""

from __future__ import annotations
from typing import List, Optional
import logging

from login_core.models import UserRecord, utc_now
from .local_database import LocalDatabase

logger = logging.getLogger(__name__)

TABLE = "users"

_COLUMNS = (
    "name, lastname, username, email, password, firebase_uid, role_id, needs_sync, "
    "pending_password_change, old_password_hash, registration_date, last_modified, "
    "password_changed_date"
)


class LocalUserStore:
    """Local users table."""

    def __init__(self, db: LocalDatabase):
        self.db = db

    # =========================================================================
    # CRUD
    # =========================================================================

    def insert(self, record: UserRecord) -> bool:
        """Insert a user and assign `record.id`."""
        now = utc_now()
        record.registration_date = record.registration_date or now
        record.last_modified = now

        with self.db.transaction(table=TABLE, operation="insert") as conn:
            cursor = conn.execute(
                f"INSERT INTO users ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.name,
                    record.lastname,
                    record.username or record.email,
                    record.email,
                    record.password_hash,
                    record.remote_uid or None,
                    int(record.role),
                    int(record.needs_sync),
                    int(record.pending_password_change),
                    record.old_password_hash or None,
                    record.registration_date,
                    record.last_modified,
                    record.password_changed_date,
                ),
            )
            record.id = cursor.lastrowid

        logger.debug(f"Inserted local user {record.id} ({record.email})")
        return True

    def update(self, record: UserRecord) -> bool:
        """
        Persist the profile fields of `record`. A stored remote_uid is kept
        when the record carries none. Credential columns are only written by
        update_password / clear_pending_password_change.
        """
        if record.id is None:
            return False
        record.last_modified = utc_now()

        with self.db.transaction(table=TABLE, operation="update") as conn:
            cursor = conn.execute(
                """
                UPDATE users SET
                    name = ?, lastname = ?, username = ?, email = ?,
                    firebase_uid = COALESCE(?, firebase_uid),
                    role_id = ?, needs_sync = ?, last_modified = ?
                WHERE id = ?
                """,
                (
                    record.name,
                    record.lastname,
                    record.username or record.email,
                    record.email,
                    record.remote_uid or None,
                    int(record.role),
                    int(record.needs_sync),
                    record.last_modified,
                    record.id,
                ),
            )
            return cursor.rowcount > 0

    def delete(self, user_id: int) -> bool:
        return self.db.execute(
            "DELETE FROM users WHERE id = ?", (user_id,), table=TABLE, operation="delete"
        ) > 0

    def fetch(self, user_id: int) -> Optional[UserRecord]:
        row = self.db.query_one("SELECT * FROM users WHERE id = ?", (user_id,), table=TABLE)
        return UserRecord.from_row(row) if row else None

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        """Look a user up by email or username (case-insensitive)."""
        if not email:
            return None
        row = self.db.query_one(
            "SELECT * FROM users WHERE email = ? COLLATE NOCASE OR username = ? COLLATE NOCASE "
            "ORDER BY id LIMIT 1",
            (email.strip(), email.strip()),
            table=TABLE,
        )
        return UserRecord.from_row(row) if row else None

    def find_by_remote_uid(self, remote_uid: str) -> Optional[UserRecord]:
        row = self.db.query_one(
            "SELECT * FROM users WHERE firebase_uid = ? LIMIT 1", (remote_uid,), table=TABLE
        )
        return UserRecord.from_row(row) if row else None

    def fetch_all(self) -> List[UserRecord]:
        rows = self.db.query("SELECT * FROM users ORDER BY id", table=TABLE)
        return [UserRecord.from_row(row) for row in rows]

    def count(self) -> int:
        return self.db.scalar("SELECT COUNT(*) FROM users", table=TABLE) or 0

    # =========================================================================
    # SYNC BOOKKEEPING
    # =========================================================================

    def mark_as_synced(self, user_id: int, remote_uid: Optional[str] = None) -> bool:
        """Clear needs_sync, optionally recording the remote identifier."""
        return self.db.execute(
            "UPDATE users SET needs_sync = 0, firebase_uid = COALESCE(?, firebase_uid) WHERE id = ?",
            (remote_uid or None, user_id),
            table=TABLE,
            operation="mark_as_synced",
        ) > 0

    def set_remote_uid(self, user_id: int, remote_uid: str) -> bool:
        return self.db.execute(
            "UPDATE users SET firebase_uid = ? WHERE id = ?",
            (remote_uid, user_id),
            table=TABLE,
            operation="set_remote_uid",
        ) > 0

    def get_users_needing_sync(self) -> List[UserRecord]:
        rows = self.db.query("SELECT * FROM users WHERE needs_sync = 1 ORDER BY id", table=TABLE)
        return [UserRecord.from_row(row) for row in rows]

    def pending_sync_count(self) -> int:
        return self.db.scalar("SELECT COUNT(*) FROM users WHERE needs_sync = 1", table=TABLE) or 0

    def get_users_with_pending_password_change(self) -> List[UserRecord]:
        rows = self.db.query(
            "SELECT * FROM users WHERE pending_password_change = 1 ORDER BY id", table=TABLE
        )
        return [UserRecord.from_row(row) for row in rows]

    def clear_pending_password_change(self, user_id: int) -> bool:
        return self.db.execute(
            "UPDATE users SET pending_password_change = 0, old_password_hash = NULL WHERE id = ?",
            (user_id,),
            table=TABLE,
            operation="clear_pending_password_change",
        ) > 0

    def update_password(
        self,
        user_id: int,
        password_hash: str,
        pending_old_hash: Optional[str] = None,
    ) -> bool:
        """
        Store a new password hash.

        With `pending_old_hash` the change is flagged pending. A hash kept
        from an earlier pending change wins, since the remote store still
        holds that password.
        """
        now = utc_now()
        if pending_old_hash:
            sql = (
                "UPDATE users SET password = ?, password_changed_date = ?, last_modified = ?, "
                "pending_password_change = 1, "
                "old_password_hash = COALESCE(old_password_hash, ?) WHERE id = ?"
            )
            params = (password_hash, now, now, pending_old_hash, user_id)
        else:
            sql = (
                "UPDATE users SET password = ?, password_changed_date = ?, last_modified = ? "
                "WHERE id = ?"
            )
            params = (password_hash, now, now, user_id)
        return self.db.execute(sql, params, table=TABLE, operation="update_password") > 0

    def refresh_password_hash(self, user_id: int, password_hash: str) -> bool:
        """Cache the hash of a password just proven remotely. No-op while a change is pending."""
        return self.db.execute(
            "UPDATE users SET password = ? WHERE id = ? AND pending_password_change = 0",
            (password_hash, user_id),
            table=TABLE,
            operation="refresh_password_hash",
        ) > 0

    def refresh_from_remote(self, user_id: int, remote: UserRecord) -> bool:
        """
        Overwrite profile fields with the remote copy and mark synced.
        Password and pending-change state are left alone.
        """
        return self.db.execute(
            """
            UPDATE users SET
                name = ?, lastname = ?, role_id = ?,
                firebase_uid = COALESCE(?, firebase_uid),
                needs_sync = 0, last_modified = ?
            WHERE id = ?
            """,
            (
                remote.name,
                remote.lastname,
                int(remote.role),
                remote.remote_uid or None,
                utc_now(),
                user_id,
            ),
            table=TABLE,
            operation="refresh_from_remote",
        ) > 0
