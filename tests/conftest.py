# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import itertools
from types import SimpleNamespace
from typing import Dict, List, Optional

import pytest

from login_core.bootstrap import build_services
from login_core.config import Settings
from login_core.data import RemoteRoleStore, RemoteUserStore
from login_core.errors import RemoteAuthError, RemoteAuthorizationError
from login_core.models import RemoteSession, RoleRecord, UserRecord
from login_core.offline import ConnectionStatus, ConnectivityMonitor


# =============================================================================
# IN-MEMORY REMOTE STORE
# =============================================================================

class FakeRemoteUserStore(RemoteUserStore):
    """
    In-memory stand-in for the Supabase user store.

    Tokens are "token-<uid>"; profile calls reject any other token, which
    mirrors row level security. Set `fail_with` to make every call raise.
    """

    def __init__(self):
        self.accounts: Dict[str, Dict[str, str]] = {}
        self.profiles: Dict[str, dict] = {}
        self.calls: List[str] = []
        self.fail_with: Optional[Exception] = None
        self._ids = itertools.count(1)

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_with is not None:
            raise self.fail_with

    @staticmethod
    def token_for(uid: str) -> str:
        return f"token-{uid}"

    def _session(self, email: str) -> RemoteSession:
        uid = self.accounts[email]["uid"]
        return RemoteSession(uid=uid, email=email, access_token=self.token_for(uid), refresh_token="refresh")

    def _check_token(self, uid: str, token: str) -> None:
        if token != self.token_for(uid):
            raise RemoteAuthorizationError("token does not grant access")

    def add_account(self, email: str, password: str, **profile) -> str:
        uid = f"uid-{next(self._ids)}"
        self.accounts[email] = {"uid": uid, "password": password}
        if profile:
            self.profiles[uid] = {"id": uid, "email": email, "role": 1, **profile}
        return uid

    async def create_account(self, email, password):
        self._enter("create_account")
        if email in self.accounts:
            raise RemoteAuthError("exists", reason=RemoteAuthError.ALREADY_EXISTS)
        self.add_account(email, password)
        return self._session(email)

    async def sign_in(self, email, password):
        self._enter("sign_in")
        account = self.accounts.get(email)
        if account is None or account["password"] != password:
            raise RemoteAuthError("bad credentials", reason=RemoteAuthError.INVALID_CREDENTIALS)
        return self._session(email)

    async def sign_out(self, session):
        self._enter("sign_out")

    async def update_password_with_old(self, email, old_password, new_password):
        self._enter("update_password_with_old")
        account = self.accounts.get(email)
        if account is None or account["password"] != old_password:
            raise RemoteAuthError("bad credentials", reason=RemoteAuthError.INVALID_CREDENTIALS)
        account["password"] = new_password

    async def fetch_profile(self, uid, token):
        self._enter("fetch_profile")
        self._check_token(uid, token)
        profile = self.profiles.get(uid)
        return UserRecord.from_remote_profile(profile) if profile else None

    async def save_profile(self, record, token):
        self._enter("save_profile")
        self._check_token(record.remote_uid, token)
        self.profiles[record.remote_uid] = record.to_remote_profile()
        return True

    async def delete_profile(self, uid, token):
        self._enter("delete_profile")
        self._check_token(uid, token)
        return self.profiles.pop(uid, None) is not None


class FakeRemoteRoleStore(RemoteRoleStore):
    """In-memory stand-in for the Supabase roles table. Any token is accepted."""

    def __init__(self):
        self.roles: Dict[int, RoleRecord] = {}
        self.calls: List[str] = []
        self.fail_with: Optional[Exception] = None

    def _enter(self, name: str, token: str) -> None:
        self.calls.append(name)
        if self.fail_with is not None:
            raise self.fail_with
        if not token:
            raise RemoteAuthorizationError("token required")

    async def initialize(self, token):
        self._enter("initialize", token)
        if self.roles:
            return 0
        for role in (RoleRecord(1, "User"), RoleRecord(2, "Admin"), RoleRecord(3, "Guest")):
            self.roles[role.id] = role
        return 3

    async def fetch(self, role_id, token):
        self._enter("fetch", token)
        return self.roles.get(role_id)

    async def fetch_all(self, token):
        self._enter("fetch_all", token)
        return [self.roles[k] for k in sorted(self.roles)]

    async def insert(self, role, token):
        self._enter("insert", token)
        self.roles[role.id] = RoleRecord(role.id, role.name, role.description)
        return True

    async def update(self, role, token):
        self._enter("update", token)
        if role.id not in self.roles:
            return False
        self.roles[role.id] = RoleRecord(role.id, role.name, role.description)
        return True

    async def delete(self, role_id, token):
        self._enter("delete", token)
        return self.roles.pop(role_id, None) is not None


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def network():
    """Mutable network state read by the monitor's status check"""
    return SimpleNamespace(status=ConnectionStatus.OFFLINE)


@pytest.fixture
def monitor(network):
    """ConnectivityMonitor whose status check reports `network.status`"""
    return ConnectivityMonitor(
        supabase_url="https://example.supabase.co",
        status_check=lambda: network.status,
    )


@pytest.fixture
def remote_users():
    return FakeRemoteUserStore()


@pytest.fixture
def remote_roles():
    return FakeRemoteRoleStore()


@pytest.fixture
def settings(tmp_path):
    return Settings(db_path=tmp_path / "security.db", log_to_file=False)


@pytest.fixture
def services(settings, remote_users, remote_roles, monitor):
    """Fully wired services over a real SQLite file and in-memory remote"""
    wired = build_services(settings, remote_users=remote_users, remote_roles=remote_roles, monitor=monitor)
    wired.database.initialize()
    return wired


@pytest.fixture
def set_online(network, monitor):
    """Switch the simulated network and run a fresh check"""
    async def _set(online: bool) -> bool:
        network.status = ConnectionStatus.ONLINE if online else ConnectionStatus.OFFLINE
        return await monitor.check_connectivity_async()
    return _set


