# =============================================================================
# login_core/offline/credential_sync.py
# Interactive Reconciliation of Offline Password Changes
# =============================================================================
"""
A password changed offline cannot be pushed by background sync: the remote
store wants the previous password first. The user re-enters both
passwords, they are checked against the local hashes, and the remote is
then authenticated with the old one and updated to the new one.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, List
import logging

from login_core.auth.passwords import verify_password
from login_core.data.remote_store import RemoteUserStore
from login_core.errors import RemoteAuthError
from login_core.models import PasswordChangeResult, UserRecord
from .connection_manager import ConnectivityMonitor
from .hybrid_user_dal import REMOTE_FAILURES
from .local_user_store import LocalUserStore

if TYPE_CHECKING:
    from login_core.auth.session import UserSession

logger = logging.getLogger(__name__)


class CredentialReconciler:
    """Interactive wizard backend for pending password changes."""

    def __init__(
        self,
        local: LocalUserStore,
        remote: RemoteUserStore,
        monitor: ConnectivityMonitor,
        session: UserSession,
    ):
        self.local = local
        self.remote = remote
        self.monitor = monitor
        self.session = session

    def users_with_pending_password_change(self) -> List[UserRecord]:
        return self.local.get_users_with_pending_password_change()

    def has_pending_change(self, user_id: int) -> bool:
        record = self.local.fetch(user_id)
        return bool(record and record.pending_password_change)

    async def sync_password_change(
        self,
        user_id: int,
        old_password: str,
        new_password: str,
    ) -> PasswordChangeResult:
        """
        Push a pending password change.

        Args:
            user_id: Local id of the user
            old_password: The password in effect before the offline change
            new_password: The password set offline (must match the local hash)
        """
        record = self.local.fetch(user_id)
        if record is None:
            return PasswordChangeResult.failure("User not found.", error_code="USER_NOT_FOUND")
        if not record.pending_password_change:
            return PasswordChangeResult.failure("No pending password change.", error_code="NO_PENDING_CHANGE")

        if not verify_password(old_password, record.old_password_hash):
            logger.info(f"Old password verification failed for {record.email}")
            return PasswordChangeResult.failure("The old password is incorrect.", error_code="INVALID_OLD_PASSWORD")
        if not verify_password(new_password, record.password_hash):
            logger.info(f"New password verification failed for {record.email}")
            return PasswordChangeResult.failure(
                "The new password does not match the password set on this device.",
                error_code="INVALID_NEW_PASSWORD",
            )

        if not await self.monitor.check_connectivity_async():
            return PasswordChangeResult.failure("No network connection available.", error_code="OFFLINE")

        try:
            await self.remote.update_password_with_old(record.email, old_password, new_password)
        except RemoteAuthError as e:
            logger.warning(f"Remote rejected password sync for {record.email} ({e.reason})")
            return PasswordChangeResult.failure(
                "The server rejected the old password.", error_code="REMOTE_AUTH_FAILED"
            )
        except REMOTE_FAILURES as e:
            logger.warning(f"Password sync for {record.email} failed: {e.code}")
            return PasswordChangeResult.failure(
                "Could not reach the server. Please try again later.", error_code=e.code
            )

        self.local.clear_pending_password_change(record.id)
        current = self.session.current_user
        if current is not None and current.id == record.id:
            self.session.update_user(self.local.fetch(record.id))
        logger.info(f"Pending password change synchronized for {record.email}")
        return PasswordChangeResult.online_success("Password synchronized successfully.")
