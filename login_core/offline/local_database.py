# =============================================================================
# login_core/offline/local_database.py
# Local SQLite Database for Offline Operations
# =============================================================================
"""
LocalDatabase - SQLite storage for users and roles.

Features:
- Idempotent schema creation
- Idempotent seeding of the default roles (User=1, Admin=2, Guest=3)
- One connection per operation, no long-lived transaction
- sqlite3 errors translated to StorageError / ConflictError
"""

from __future__ import annotations
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence
import logging

from login_core.config import DEFAULT_DB_PATH
from login_core.errors import ConflictError, StorageError
from login_core.models import DEFAULT_ROLES, utc_now

logger = logging.getLogger(__name__)


class LocalDatabase:
    """
    Local SQLite database for offline user and role storage.

    Usage:
        db = LocalDatabase(Path("local_data/security.db"))
        db.initialize()
        with db.transaction(table="users", operation="insert") as conn:
            conn.execute(...)
    """

    SCHEMA = {
        "roles": """
            CREATE TABLE IF NOT EXISTS roles (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                description TEXT,
                needs_sync INTEGER NOT NULL DEFAULT 0,
                last_modified TEXT
            )
        """,
        "users": """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT,
                lastname TEXT,
                username TEXT,
                email TEXT NOT NULL UNIQUE COLLATE NOCASE,
                password TEXT NOT NULL,
                firebase_uid TEXT,
                role_id INTEGER NOT NULL DEFAULT 1
                    REFERENCES roles(id)
                    CHECK (role_id IN (1, 2, 3)),
                needs_sync INTEGER NOT NULL DEFAULT 1,
                pending_password_change INTEGER NOT NULL DEFAULT 0,
                old_password_hash TEXT,
                registration_date TEXT,
                last_modified TEXT,
                password_changed_date TEXT,
                CHECK (
                    (pending_password_change = 1)
                    = (old_password_hash IS NOT NULL AND old_password_hash <> '')
                )
            )
        """,
    }

    INDEXES = (
        "CREATE INDEX IF NOT EXISTS idx_users_needs_sync ON users(needs_sync)",
        "CREATE INDEX IF NOT EXISTS idx_users_firebase_uid ON users(firebase_uid)",
    )

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize local database.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path or DEFAULT_DB_PATH)
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _ensure_directory(self) -> None:
        """Ensure database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def transaction(
        self,
        table: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> Iterator[sqlite3.Connection]:
        """
        Open a connection, commit on success, roll back on error, always close.

        Raises:
            ConflictError: unique/check/foreign-key constraint violated
            StorageError: any other sqlite error
        """
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open local database: {e}", table=table, operation=operation)

        try:
            yield conn
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise ConflictError(f"Constraint violation: {e}", table=table) from e
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"Local database error: {e}", table=table, operation=operation) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create tables and seed default roles. Safe to call repeatedly."""
        if self._initialized:
            return

        try:
            self._ensure_directory()
        except OSError as e:
            raise StorageError(f"Cannot create database directory: {e}", operation="initialize")

        with self.transaction(operation="initialize") as conn:
            for table_name, schema in self.SCHEMA.items():
                conn.execute(schema)
                logger.debug(f"Created/verified table: {table_name}")
            for statement in self.INDEXES:
                conn.execute(statement)

        self.seed_default_roles()
        self._initialized = True
        logger.info(f"Local database initialized at: {self.db_path}")

    def seed_default_roles(self) -> int:
        """
        Insert any missing default role. Existing rows are left untouched.

        Returns:
            Number of roles actually inserted
        """
        inserted = 0
        with self.transaction(table="roles", operation="seed") as conn:
            for role in DEFAULT_ROLES:
                cursor = conn.execute(
                    "INSERT OR IGNORE INTO roles (id, name, description, needs_sync, last_modified) "
                    "VALUES (?, ?, ?, 0, ?)",
                    (role.id, role.name, role.description, utc_now()),
                )
                inserted += cursor.rowcount
        if inserted:
            logger.info(f"Seeded {inserted} default role(s)")
        return inserted

    # =========================================================================
    # GENERIC HELPERS
    # =========================================================================

    def query(self, sql: str, params: Sequence[Any] = (), table: Optional[str] = None) -> List[sqlite3.Row]:
        """Execute a read-only query."""
        with self.transaction(table=table, operation="query") as conn:
            return conn.execute(sql, list(params)).fetchall()

    def query_one(self, sql: str, params: Sequence[Any] = (), table: Optional[str] = None) -> Optional[sqlite3.Row]:
        with self.transaction(table=table, operation="query") as conn:
            return conn.execute(sql, list(params)).fetchone()

    def execute(self, sql: str, params: Sequence[Any] = (), table: Optional[str] = None, operation: Optional[str] = None) -> int:
        """Execute a write statement. Returns the affected row count."""
        with self.transaction(table=table, operation=operation) as conn:
            return conn.execute(sql, list(params)).rowcount

    def scalar(self, sql: str, params: Sequence[Any] = (), table: Optional[str] = None) -> Any:
        row = self.query_one(sql, params, table=table)
        return row[0] if row is not None else None
