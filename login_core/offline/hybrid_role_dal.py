# =============================================================================
# login_core/offline/hybrid_role_dal.py
# Offline-First Role Access
# =============================================================================

from __future__ import annotations
from typing import TYPE_CHECKING, List, Optional
import logging

from login_core.data.remote_store import RemoteRoleStore
from login_core.errors import ValidationError
from login_core.models import RESERVED_ROLE_IDS, RoleRecord
from .connection_manager import ConnectivityMonitor
from .hybrid_user_dal import REMOTE_FAILURES
from .local_role_store import LocalRoleStore

if TYPE_CHECKING:
    from login_core.auth.session import UserSession

logger = logging.getLogger(__name__)


class HybridRoleDal:
    """
    Offline-first role data access. Same routing rules as HybridUserDal;
    the remote leg additionally needs the signed-in user's token and is
    skipped without one.
    """

    def __init__(
        self,
        local: LocalRoleStore,
        remote: RemoteRoleStore,
        monitor: ConnectivityMonitor,
        session: UserSession,
    ):
        self.local = local
        self.remote = remote
        self.monitor = monitor
        self.session = session

    @property
    def _remote_token(self) -> Optional[str]:
        if not self.monitor.is_online:
            return None
        return self.session.auth_token

    async def initialize(self) -> int:
        """
        Seed the remote roles table when reachable and authenticated.
        Failures are logged, never raised.
        """
        token = self._remote_token
        if not token:
            logger.debug("Remote role initialization skipped (offline or no session)")
            return 0
        try:
            seeded = await self.remote.initialize(token)
        except REMOTE_FAILURES as e:
            logger.warning(f"Remote role initialization failed: {e.code}")
            return 0
        logger.info("Role providers initialized successfully")
        return seeded

    # =========================================================================
    # READS (local only)
    # =========================================================================

    async def fetch(self, role_id: int) -> Optional[RoleRecord]:
        return self.local.fetch(role_id)

    async def fetch_by_name(self, name: str) -> Optional[RoleRecord]:
        return self.local.fetch_by_name(name)

    async def fetch_all(self) -> List[RoleRecord]:
        return self.local.fetch_all()

    # =========================================================================
    # WRITES
    # =========================================================================

    async def insert(self, role: RoleRecord) -> bool:
        if not role.name or not role.name.strip():
            raise ValidationError("Role name is required.", field="name")
        role.name = role.name.strip()
        if role.id is None:
            role.id = self.local.next_id()

        self.local.insert(role, needs_sync=True)
        logger.info(f"Role '{role.name}' (id {role.id}) inserted locally")

        token = self._remote_token
        if token:
            try:
                if await self.remote.insert(role, token):
                    self.local.mark_as_synced(role.id)
            except REMOTE_FAILURES as e:
                logger.warning(f"Remote insert of role '{role.name}' failed, will sync later: {e.code}")
        else:
            logger.info(f"Role '{role.name}' will be synced when connection is restored")
        return True

    async def update(self, role: RoleRecord) -> bool:
        if not role.name or not role.name.strip():
            raise ValidationError("Role name is required.", field="name")
        role.name = role.name.strip()
        if not self.local.update(role, needs_sync=True):
            return False

        token = self._remote_token
        if token:
            try:
                updated = await self.remote.update(role, token)
                if not updated:
                    updated = await self.remote.insert(role, token)
                if updated:
                    self.local.mark_as_synced(role.id)
            except REMOTE_FAILURES as e:
                logger.warning(f"Remote update of role '{role.name}' failed, will sync later: {e.code}")
        return True

    async def delete(self, role_id: int) -> bool:
        if role_id in RESERVED_ROLE_IDS:
            raise ValidationError(f"Role {role_id} is a built-in role and cannot be deleted.", field="id")
        if not self.local.delete(role_id):
            return False

        token = self._remote_token
        if token:
            try:
                await self.remote.delete(role_id, token)
            except REMOTE_FAILURES as e:
                logger.warning(f"Remote delete of role {role_id} failed, remote row orphaned: {e.code}")
        return True
