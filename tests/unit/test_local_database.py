# =============================================================================
# tests/unit/test_local_database.py
# Unit Tests for the Local SQLite Stores
# =============================================================================

import sqlite3

import pytest

from login_core.auth import hash_password
from login_core.errors import ConflictError, StorageError
from login_core.models import RoleRecord, UserRecord, UserRole
from login_core.offline import LocalDatabase, LocalRoleStore, LocalUserStore


@pytest.fixture
def db(tmp_path):
    database = LocalDatabase(tmp_path / "nested" / "security.db")
    database.initialize()
    return database


@pytest.fixture
def users(db):
    return LocalUserStore(db)


@pytest.fixture
def roles(db):
    return LocalRoleStore(db)


def make_user(email="a@x.com", **kwargs):
    defaults = dict(name="Ada", lastname="Lovelace", email=email, password_hash=hash_password("secret1"))
    defaults.update(kwargs)
    return UserRecord(**defaults)


class TestLocalDatabase:
    """Test schema creation and role seeding"""

    def test_initialize_creates_directory_and_tables(self, db):
        assert db.db_path.exists()
        tables = {row["name"] for row in db.query("SELECT name FROM sqlite_master WHERE type='table'")}
        assert {"users", "roles"} <= tables

    def test_users_table_columns(self, db):
        columns = {row["name"] for row in db.query("PRAGMA table_info(users)")}
        assert {"firebase_uid", "password", "role_id", "needs_sync",
                "pending_password_change", "old_password_hash"} <= columns
        assert "remote_uid" not in columns

    def test_default_roles_seeded(self, roles):
        names = {role.id: role.name for role in roles.fetch_all()}
        assert names == {1: "User", 2: "Admin", 3: "Guest"}

    def test_seeding_is_idempotent(self, db, roles):
        assert db.seed_default_roles() == 0
        fresh = LocalDatabase(db.db_path)
        fresh.initialize()
        assert len(roles.fetch_all()) == 3

    def test_seeding_restores_missing_default(self, db, roles):
        db.execute("DELETE FROM roles WHERE id = 3")
        assert db.seed_default_roles() == 1
        assert roles.fetch(3).name == "Guest"

    def test_sqlite_error_becomes_storage_error(self, db):
        with pytest.raises(StorageError):
            db.query("SELECT * FROM no_such_table")

    def test_unopenable_database_raises_storage_error(self, tmp_path):
        directory = tmp_path / "dir.db"
        directory.mkdir()
        with pytest.raises(StorageError):
            LocalDatabase(directory).query("SELECT 1")


class TestLocalUserStore:
    """Test user CRUD and sync bookkeeping"""

    def test_insert_assigns_id_and_defaults(self, users):
        record = make_user()
        assert users.insert(record)
        assert record.id is not None

        stored = users.fetch(record.id)
        assert stored.email == "a@x.com"
        assert stored.needs_sync is True
        assert stored.remote_uid is None
        assert stored.registration_date is not None
        assert stored.role is UserRole.USER

    def test_duplicate_email_conflicts(self, users):
        users.insert(make_user())
        with pytest.raises(ConflictError):
            users.insert(make_user(email="A@X.com"))

    def test_find_by_email_is_case_insensitive(self, users):
        users.insert(make_user())
        assert users.find_by_email("A@x.COM").email == "a@x.com"
        assert users.find_by_email("nobody@x.com") is None

    def test_missing_rows(self, users):
        assert users.fetch(999) is None
        assert users.delete(999) is False
        assert users.update(make_user(id=999)) is False

    def test_update_keeps_remote_uid(self, users):
        record = make_user(remote_uid="uid-1")
        users.insert(record)

        record.remote_uid = None
        record.name = "Augusta"
        users.update(record)

        stored = users.fetch(record.id)
        assert stored.name == "Augusta"
        assert stored.remote_uid == "uid-1"

    def test_update_leaves_credentials_alone(self, users):
        old_hash = hash_password("secret1")
        record = make_user(password_hash=old_hash, remote_uid="uid-1")
        users.insert(record)
        stale = users.fetch(record.id)
        new_hash = hash_password("secret2")
        users.update_password(record.id, new_hash, pending_old_hash=old_hash)

        assert users.update(stale.copy(name="Augusta"))
        assert users.update(UserRecord(id=record.id, name="Blank", email="a@x.com"))

        stored = users.fetch(record.id)
        assert stored.name == "Blank"
        assert stored.password_hash == new_hash
        assert stored.pending_password_change
        assert stored.old_password_hash == old_hash

    def test_mark_as_synced(self, users):
        record = make_user()
        users.insert(record)
        users.mark_as_synced(record.id, "uid-9")

        stored = users.fetch(record.id)
        assert stored.needs_sync is False
        assert stored.remote_uid == "uid-9"
        assert users.get_users_needing_sync() == []
        assert users.pending_sync_count() == 0

    def test_pending_password_change_keeps_first_old_hash(self, users):
        first_hash = hash_password("secret1")
        record = make_user(password_hash=first_hash, remote_uid="uid-1")
        users.insert(record)

        users.update_password(record.id, hash_password("secret2"), pending_old_hash=first_hash)
        users.update_password(record.id, hash_password("secret3"), pending_old_hash="$2b$other")

        stored = users.fetch(record.id)
        assert stored.pending_password_change
        assert stored.old_password_hash == first_hash
        assert stored.password_changed_date is not None
        assert [u.id for u in users.get_users_with_pending_password_change()] == [record.id]

        users.clear_pending_password_change(record.id)
        stored = users.fetch(record.id)
        assert not stored.pending_password_change
        assert stored.old_password_hash is None

    def test_pending_flag_requires_old_hash(self, db, users):
        record = make_user()
        users.insert(record)
        with pytest.raises(ConflictError):
            db.execute("UPDATE users SET pending_password_change = 1 WHERE id = ?", (record.id,))

    def test_role_outside_enum_rejected(self, db, users):
        record = make_user()
        users.insert(record)
        with pytest.raises(ConflictError):
            db.execute("UPDATE users SET role_id = 9 WHERE id = ?", (record.id,))

    def test_refresh_password_hash_skipped_while_pending(self, users):
        old_hash = hash_password("secret1")
        record = make_user(password_hash=old_hash, remote_uid="uid-1")
        users.insert(record)
        users.update_password(record.id, hash_password("secret2"), pending_old_hash=old_hash)

        assert users.refresh_password_hash(record.id, hash_password("secret1")) is False

    def test_refresh_from_remote(self, users):
        record = make_user()
        users.insert(record)
        remote = UserRecord(name="Remote", lastname="Name", email="a@x.com", remote_uid="uid-3", role=2)

        users.refresh_from_remote(record.id, remote)

        stored = users.fetch(record.id)
        assert (stored.name, stored.lastname, stored.role) == ("Remote", "Name", UserRole.ADMIN)
        assert stored.remote_uid == "uid-3"
        assert stored.needs_sync is False
        assert stored.password_hash == record.password_hash


class TestLocalRoleStore:
    """Test role CRUD"""

    def test_insert_and_fetch_by_name(self, roles):
        roles.insert(RoleRecord(5, "Manager", "Manages things"))
        assert roles.fetch_by_name("manager").id == 5
        assert roles.needs_sync(5)
        assert roles.next_id() == 6

    def test_duplicate_name_conflicts(self, roles):
        with pytest.raises(ConflictError):
            roles.insert(RoleRecord(6, "Admin"))

    def test_upsert_from_sync_counts_only_changes(self, roles):
        assert roles.upsert_from_sync(RoleRecord(5, "Manager")) is True
        assert roles.upsert_from_sync(RoleRecord(5, "Manager")) is False
        assert roles.upsert_from_sync(RoleRecord(5, "Lead")) is True
        assert roles.fetch(5).name == "Lead"
        assert not roles.needs_sync(5)

    def test_delete_referenced_role_conflicts(self, users, roles):
        users.insert(make_user(role=UserRole.ADMIN))
        with pytest.raises(ConflictError):
            roles.delete(2)
