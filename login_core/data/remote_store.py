# =============================================================================
# login_core/data/remote_store.py
# Remote Store Contracts
# =============================================================================
"""
Interfaces the hybrid layer and the sync engine talk to. Every method is a
coroutine and reports failures by raising a RemoteStoreError subclass:

    RemoteUnavailable          network down, timeout, 5xx
    RemoteAuthError            wrong credentials, unknown/disabled account,
                               account already exists (see `reason`)
    RemoteAuthorizationError   token missing, expired or not allowed
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional

from login_core.models import RemoteSession, RoleRecord, UserRecord


class RemoteUserStore(ABC):
    """Remote auth accounts plus the per-user profile table."""

    @abstractmethod
    async def create_account(self, email: str, password: str) -> RemoteSession:
        ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> RemoteSession:
        ...

    @abstractmethod
    async def sign_out(self, session: RemoteSession) -> None:
        ...

    @abstractmethod
    async def update_password_with_old(self, email: str, old_password: str, new_password: str) -> None:
        """Authenticate with the old password, then set the new one."""

    @abstractmethod
    async def fetch_profile(self, uid: str, token: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def save_profile(self, record: UserRecord, token: str) -> bool:
        """Insert or update the profile keyed by `record.remote_uid`."""

    @abstractmethod
    async def delete_profile(self, uid: str, token: str) -> bool:
        ...


class RemoteRoleStore(ABC):
    """Remote roles table. Every call needs a bearer token."""

    @abstractmethod
    async def initialize(self, token: str) -> int:
        """Seed the default roles when the table is empty. Returns roles seeded."""

    @abstractmethod
    async def fetch(self, role_id: int, token: str) -> Optional[RoleRecord]:
        ...

    @abstractmethod
    async def fetch_all(self, token: str) -> List[RoleRecord]:
        ...

    @abstractmethod
    async def insert(self, role: RoleRecord, token: str) -> bool:
        ...

    @abstractmethod
    async def update(self, role: RoleRecord, token: str) -> bool:
        ...

    @abstractmethod
    async def delete(self, role_id: int, token: str) -> bool:
        ...
