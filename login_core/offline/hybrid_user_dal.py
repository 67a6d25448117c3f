# =============================================================================
# login_core/offline/hybrid_user_dal.py
# Offline-First User Access (local SQLite + Supabase mirror)
# =============================================================================
"""
HybridUserDal - single routing point between the local users table and
the remote store.

Rules:
- Writes hit the local store first. A failed local write fails the call
  and the remote is never attempted.
- When the cached connectivity flag says online, the write is mirrored
  remotely. A successful mirror clears needs_sync; a failed one leaves
  it set for the next sync run. Remote failures never reach the caller.
- Reads are served from the local store only.
- Sign-in, registration and password changes take a fresh connectivity
  reading before choosing remote or local.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, List, Optional
import logging

from login_core.auth.passwords import hash_password, verify_password
from login_core.data.remote_store import RemoteUserStore
from login_core.errors import (
    ConfigurationError,
    ConflictError,
    RemoteAuthError,
    RemoteStoreError,
)
from login_core.models import (
    PasswordChangeResult,
    RegistrationMode,
    RegistrationResult,
    RemoteSession,
    UserRecord,
    UserRole,
)
from .connection_manager import ConnectivityMonitor
from .credential_cache import OfflineCredentialCache
from .local_user_store import LocalUserStore

if TYPE_CHECKING:
    from login_core.auth.session import UserSession

logger = logging.getLogger(__name__)

# Errors a best-effort remote leg may raise
REMOTE_FAILURES = (RemoteStoreError, ConfigurationError)


class HybridUserDal:
    """
    Offline-first user data access.

    Usage:
        dal = HybridUserDal(local_users, remote_users, monitor, session, credentials)
        user = await dal.sign_in("a@x.com", "secret1")
        await dal.update(user)
    """

    def __init__(
        self,
        local: LocalUserStore,
        remote: RemoteUserStore,
        monitor: ConnectivityMonitor,
        session: UserSession,
        credentials: OfflineCredentialCache,
    ):
        self.local = local
        self.remote = remote
        self.monitor = monitor
        self.session = session
        self.credentials = credentials

    @property
    def is_online(self) -> bool:
        return self.monitor.is_online

    # =========================================================================
    # READS (local only)
    # =========================================================================

    async def fetch(self, user_id: int) -> Optional[UserRecord]:
        return self.local.fetch(user_id)

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        return self.local.find_by_email(email)

    async def fetch_all(self) -> List[UserRecord]:
        return self.local.fetch_all()

    async def count(self) -> int:
        return self.local.count()

    async def pending_sync_count(self) -> int:
        return self.local.pending_sync_count()

    # =========================================================================
    # WRITES (local first, best-effort remote mirror)
    # =========================================================================

    async def insert(self, record: UserRecord) -> bool:
        """
        Insert a user. A plaintext `record.password` is hashed and kept in
        the credential cache until the remote account exists.
        """
        password = record.password
        if password:
            record.password_hash = hash_password(password)
        record.needs_sync = True
        record.password = None

        self.local.insert(record)
        if password and not record.remote_uid:
            self.credentials.remember(record.id, password)

        if self.is_online:
            await self._mirror_insert(record)
        return True

    async def update(self, record: UserRecord) -> bool:
        """
        Update profile fields. Password changes go through change_password.
        """
        record.needs_sync = True
        record.password = None
        if not self.local.update(record):
            return False

        self._refresh_session(record.id)
        if self.is_online:
            await self._mirror_update(record)
        return True

    async def delete(self, user_id: int) -> bool:
        """Delete locally, then best-effort remotely (a remote orphan is tolerated)."""
        record = self.local.fetch(user_id)
        if record is None or not self.local.delete(user_id):
            return False
        self.credentials.forget(user_id)

        token = self._token_for(record)
        if self.is_online and token:
            try:
                await self.remote.delete_profile(record.remote_uid, token)
            except REMOTE_FAILURES as e:
                logger.warning(f"Remote delete of user {user_id} failed, remote profile orphaned: {e.code}")

        current = self.session.current_user
        if current is not None and current.id == user_id:
            self.session.clear()
        return True

    def _token_for(self, record: UserRecord) -> Optional[str]:
        """Bearer token usable for `record`: only the signed-in user's own row is writable."""
        if record.remote_uid and record.remote_uid == self.session.remote_uid:
            return self.session.auth_token
        return None

    async def _mirror_insert(self, record: UserRecord) -> None:
        if record.remote_uid:
            await self._mirror_update(record)
            return

        password = self.credentials.get(record.id)
        if not password:
            logger.debug(f"No cached credentials for user {record.id}, leaving for sync")
            return

        try:
            remote_session = await self.remote.create_account(record.email, password)
        except RemoteAuthError as e:
            logger.warning(f"Remote account creation for {record.email} rejected ({e.reason}), leaving for sync")
            return
        except REMOTE_FAILURES as e:
            logger.info(f"Remote insert deferred for {record.email}: {e.code}")
            return

        record.remote_uid = remote_session.uid
        self.local.set_remote_uid(record.id, record.remote_uid)
        self.credentials.forget(record.id)

        if remote_session.access_token:
            try:
                await self.remote.save_profile(record, remote_session.access_token)
            except REMOTE_FAILURES as e:
                logger.info(f"Profile upload deferred for {record.email}: {e.code}")
                return

        self.local.mark_as_synced(record.id, record.remote_uid)
        record.needs_sync = False

    async def _mirror_update(self, record: UserRecord) -> None:
        token = self._token_for(record)
        if not token:
            logger.debug(f"No remote session for user {record.id}, leaving for sync")
            return
        try:
            if await self.remote.save_profile(record, token):
                self.local.mark_as_synced(record.id)
                record.needs_sync = False
        except REMOTE_FAILURES as e:
            logger.info(f"Remote update deferred for user {record.id}: {e.code}")

    # =========================================================================
    # AUTHENTICATION
    # =========================================================================

    async def sign_in(self, email: str, password: str) -> Optional[UserRecord]:
        """
        Authenticate remotely when reachable, falling back to the local hash.

        Returns:
            The signed-in record, or None when neither store accepts the credentials
        """
        logger.info(f"Sign-in requested for {email}")
        online = await self.monitor.check_connectivity_async()

        if online:
            try:
                remote_session = await self.remote.sign_in(email, password)
            except RemoteAuthError as e:
                logger.info(f"Remote sign-in rejected ({e.reason}), trying local")
            except REMOTE_FAILURES as e:
                logger.warning(f"Remote sign-in unavailable ({e.code}), trying local")
            else:
                record = await self._cache_remote_sign_in(email, password, remote_session)
                self.session.begin(record, remote_session)
                logger.info(f"Remote sign-in successful for {email}")
                return record

        record = self.local.find_by_email(email)
        if record is None or not verify_password(password, record.password_hash):
            logger.info(f"Local sign-in failed for {email}")
            return None

        if not record.remote_uid:
            # Lets the next sync create the remote account
            self.credentials.remember(record.id, password)
        self.session.begin(record)
        logger.info(f"Local sign-in successful for {email}")
        return record

    async def _cache_remote_sign_in(
        self,
        email: str,
        password: str,
        remote_session: RemoteSession,
    ) -> UserRecord:
        """Upsert the signed-in account into the local store for offline use."""
        uid = remote_session.uid
        token = remote_session.access_token
        password_hash = hash_password(password)
        existing = self.local.find_by_email(email)

        if existing is None:
            profile = await self._try_fetch_profile(uid, token)
            record = profile.copy(id=None) if profile else UserRecord(email=email)
            record.email = email
            record.username = email
            record.remote_uid = uid
            record.password_hash = password_hash
            record.needs_sync = profile is None
            self.local.insert(record)
            if profile is None and token and await self._try_save_profile(record, token):
                self.local.mark_as_synced(record.id)
            logger.info(f"Cached new remote user {email} locally (id {record.id})")
            return self.local.fetch(record.id)

        if existing.needs_sync and existing.remote_uid == uid:
            # Offline edits of an already-synced user reach the remote here
            if await self._try_save_profile(existing, token):
                self.local.mark_as_synced(existing.id)
        else:
            profile = await self._try_fetch_profile(uid, token)
            if profile is not None:
                self.local.refresh_from_remote(existing.id, profile)
            else:
                existing.remote_uid = uid
                self.local.set_remote_uid(existing.id, uid)
                if await self._try_save_profile(existing, token):
                    self.local.mark_as_synced(existing.id, uid)

        self.local.refresh_password_hash(existing.id, password_hash)
        self.credentials.forget(existing.id)
        return self.local.fetch(existing.id)

    async def _try_fetch_profile(self, uid: str, token: Optional[str]) -> Optional[UserRecord]:
        if not token:
            return None
        try:
            return await self.remote.fetch_profile(uid, token)
        except REMOTE_FAILURES as e:
            logger.info(f"Could not fetch remote profile: {e.code}")
            return None

    async def _try_save_profile(self, record: UserRecord, token: Optional[str]) -> bool:
        if not token:
            return False
        try:
            return await self.remote.save_profile(record, token)
        except REMOTE_FAILURES as e:
            logger.info(f"Could not save remote profile: {e.code}")
            return False

    async def register(self, record: UserRecord) -> RegistrationResult:
        """
        Create an account remotely when reachable, otherwise locally only.

        `record.password` holds the plaintext and `record.role` the role
        chosen by the caller.
        """
        password = record.password or ""
        record.password = None
        record.password_hash = hash_password(password)
        record.role = UserRole.coerce(record.role)

        if self.local.find_by_email(record.email) is not None:
            return RegistrationResult.fail(
                "An account with this email already exists.",
                error_code="STORE_002",
                mode=RegistrationMode.FAILED,
            )

        online = await self.monitor.check_connectivity_async()
        if online:
            try:
                remote_session = await self.remote.create_account(record.email, password)
            except RemoteAuthError as e:
                logger.warning(f"Remote registration rejected for {record.email} ({e.reason})")
                message = (
                    "An account with this email already exists."
                    if e.account_exists else "Registration was rejected by the server."
                )
                return RegistrationResult.fail(message, error_code=e.code, mode=RegistrationMode.FAILED,
                                               metadata=e.details)
            except REMOTE_FAILURES as e:
                logger.warning(f"Remote registration unavailable ({e.code}), registering locally")
            else:
                return await self._store_remote_registration(record, remote_session)

        return self._store_local_registration(record, password)

    async def _store_remote_registration(
        self,
        record: UserRecord,
        remote_session: RemoteSession,
    ) -> RegistrationResult:
        record.remote_uid = remote_session.uid
        record.needs_sync = True
        try:
            self.local.insert(record)
        except ConflictError as e:
            return RegistrationResult.from_exception(e, mode=RegistrationMode.FAILED)

        if await self._try_save_profile(record, remote_session.access_token):
            self.local.mark_as_synced(record.id)
            record.needs_sync = False

        logger.info(f"Registered {record.email} remotely (uid {record.remote_uid})")
        return RegistrationResult.ok(
            data=record,
            metadata={"message": "Registration successful."},
            mode=RegistrationMode.REMOTE,
        )

    def _store_local_registration(self, record: UserRecord, password: str) -> RegistrationResult:
        record.needs_sync = True
        try:
            self.local.insert(record)
        except ConflictError as e:
            return RegistrationResult.from_exception(e, mode=RegistrationMode.FAILED)

        self.credentials.remember(record.id, password)
        logger.info(f"Registered {record.email} locally, pending sync")
        return RegistrationResult.ok(
            data=record,
            metadata={"message": "Registered offline. Your account will be synced when you are back online."},
            mode=RegistrationMode.LOCAL_ONLY,
        )

    async def sign_out(self) -> None:
        """Best-effort remote sign-out; local session state is always cleared."""
        remote_session = self.session.remote_session
        try:
            if remote_session is not None and self.is_online:
                await self.remote.sign_out(remote_session)
        except REMOTE_FAILURES as e:
            logger.info(f"Remote sign-out failed: {e.code}")
        finally:
            self.session.clear()

    # =========================================================================
    # PASSWORD CHANGE
    # =========================================================================

    async def change_password(self, email: str, old_password: str, new_password: str) -> PasswordChangeResult:
        """
        Change a password remotely when possible, otherwise locally with a
        pending flag for interactive reconciliation.
        """
        record = self.local.find_by_email(email)
        if record is None:
            return PasswordChangeResult.failure("User not found.", error_code="USER_NOT_FOUND")

        online = await self.monitor.check_connectivity_async()
        if online and record.remote_uid and not record.pending_password_change:
            try:
                await self.remote.update_password_with_old(record.email, old_password, new_password)
            except RemoteAuthError as e:
                logger.info(f"Remote password change rejected for {email} ({e.reason})")
                return PasswordChangeResult.failure("Current password is incorrect.", error_code="INVALID_PASSWORD")
            except REMOTE_FAILURES as e:
                logger.warning(f"Remote password change unavailable ({e.code}), changing locally")
            else:
                self.local.update_password(record.id, hash_password(new_password))
                self.local.clear_pending_password_change(record.id)
                self._refresh_session(record.id)
                return PasswordChangeResult.online_success()

        if not verify_password(old_password, record.password_hash):
            return PasswordChangeResult.failure("Current password is incorrect.", error_code="INVALID_PASSWORD")

        new_hash = hash_password(new_password)
        if record.remote_uid:
            # Remote still holds the old password: needs interactive reconciliation
            self.local.update_password(record.id, new_hash, pending_old_hash=record.password_hash)
        else:
            self.local.update_password(record.id, new_hash)
            self.credentials.remember(record.id, new_password)

        self._refresh_session(record.id)
        logger.info(f"Password for {email} changed offline")
        return PasswordChangeResult.offline_success()

    def _refresh_session(self, user_id: int) -> None:
        current = self.session.current_user
        if current is not None and current.id == user_id:
            updated = self.local.fetch(user_id)
            if updated is not None:
                self.session.update_user(updated)
