# =============================================================================
# login_core/offline/sync_engine.py
# Reconciliation Engine (local SQLite <-> Supabase)
# =============================================================================
"""
SyncService - reconciles the local store with the remote store.

A run executes four ordered passes, each fault-tolerant on its own:
    1. download users  (only the signed-in user's own profile)
    2. upload users    (records with needs_sync)
    3. download roles  (needs a token, otherwise a no-op)
    4. upload roles    (needs a token, otherwise a no-op)

One run at a time: a request while a run is in flight is rejected, not
queued. Triggered on startup and on connectivity restore when records are
pending, or manually through sync_now().
"""

from __future__ import annotations
import asyncio
from datetime import datetime
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional, Set, Tuple

from login_core.data.remote_store import RemoteRoleStore, RemoteUserStore
from login_core.errors import ConflictError, RemoteAuthError
from login_core.models import (
    SyncOperationResult,
    SyncProgress,
    SyncResult,
    SyncState,
)
from login_core.services.base_service import BaseService
from .connection_manager import ConnectivityMonitor
from .credential_cache import OfflineCredentialCache
from .events import EventChannel
from .hybrid_user_dal import REMOTE_FAILURES
from .local_role_store import LocalRoleStore
from .local_user_store import LocalUserStore

if TYPE_CHECKING:
    from login_core.auth.session import UserSession

PassFunc = Callable[[], Awaitable[int]]


class SyncService(BaseService):
    """
    Reconciliation engine.

    Usage:
        sync = SyncService(local_users, local_roles, remote_users, remote_roles,
                           monitor, session, credentials)
        sync.completed.subscribe(lambda result: print(result.summary()))
        sync.attach()                 # sync on connectivity restore
        result = await sync.sync_now()
    """

    def __init__(
        self,
        local_users: LocalUserStore,
        local_roles: LocalRoleStore,
        remote_users: RemoteUserStore,
        remote_roles: RemoteRoleStore,
        monitor: ConnectivityMonitor,
        session: UserSession,
        credentials: OfflineCredentialCache,
    ):
        super().__init__()
        self.local_users = local_users
        self.local_roles = local_roles
        self.remote_users = remote_users
        self.remote_roles = remote_roles
        self.monitor = monitor
        self.session = session
        self.credentials = credentials

        self._state = SyncState.IDLE
        self._attached = False
        self._tasks: Set[asyncio.Task] = set()
        self.last_result: Optional[SyncResult] = None

        self.started: EventChannel[datetime] = EventChannel("sync.started")
        self.progress: EventChannel[SyncProgress] = EventChannel("sync.progress")
        self.completed: EventChannel[SyncResult] = EventChannel("sync.completed")

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_syncing(self) -> bool:
        return self._state == SyncState.RUNNING

    @property
    def pending_count(self) -> int:
        """Users awaiting upload, plus pending roles when a session token can push them."""
        pending = self.local_users.pending_sync_count()
        if self.session.auth_token:
            pending += self.local_roles.pending_sync_count()
        return pending

    # =========================================================================
    # TRIGGERS
    # =========================================================================

    async def sync_now(self) -> SyncResult:
        """Manual trigger: fresh connectivity check, then a full run."""
        await self.monitor.check_connectivity_async()
        return await self.sync()

    async def sync_if_pending(self) -> Optional[SyncResult]:
        """Run only when online and at least one user or role record awaits upload."""
        if not self.monitor.is_online:
            return None
        pending = self.pending_count
        if pending == 0:
            self.logger.debug("Nothing pending, sync skipped")
            return None
        self.logger.info(f"{pending} record(s) pending, starting sync")
        return await self.sync()

    def attach(self) -> None:
        """Start reacting to connectivity restore."""
        if not self._attached:
            self.monitor.changed.subscribe(self._on_connectivity_changed)
            self._attached = True

    def detach(self) -> None:
        if self._attached:
            self.monitor.changed.unsubscribe(self._on_connectivity_changed)
            self._attached = False

    def _on_connectivity_changed(self, online: bool) -> None:
        if online:
            self.logger.info("Connection restored, checking for pending sync")
            self.schedule(self.sync_if_pending())

    def schedule(self, coro: Awaitable) -> Optional[asyncio.Task]:
        """Run a sync coroutine in the background, keeping a reference to the task."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.logger.warning("No running event loop, background sync not scheduled")
            coro.close()
            return None
        task = loop.create_task(self._background(coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _background(self, coro: Awaitable) -> None:
        try:
            await coro
        except Exception as e:
            self.logger.error(f"Background sync failed: {e}", exc_info=True)

    async def wait_for_background(self) -> None:
        """Await every background sync scheduled so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # =========================================================================
    # RUN
    # =========================================================================

    async def sync(self) -> SyncResult:
        """Perform one run. Rejected when offline or when a run is in flight."""
        if self._state == SyncState.RUNNING:
            self.logger.info("Sync already in progress, request rejected")
            return SyncResult.rejected("Sync already in progress")
        if not self.monitor.is_online:
            return SyncResult.rejected("No network connection available")

        self._state = SyncState.RUNNING
        result = SyncResult(start_time=datetime.now())
        self.started.publish(result.start_time)

        passes: List[Tuple[str, PassFunc]] = [
            ("Downloading users", self._download_users),
            ("Uploading users", self._upload_users),
            ("Downloading roles", self._download_roles),
            ("Uploading roles", self._upload_roles),
        ]

        try:
            for index, (label, run_pass) in enumerate(passes):
                self.progress.publish(SyncProgress(f"{label}...", index, len(passes)))
                result.passes.append(await self._run_pass(label, run_pass))

            downloads_users, uploads_users, downloads_roles, uploads_roles = result.passes
            result.users_downloaded = downloads_users.count
            result.users_uploaded = uploads_users.count
            result.roles_downloaded = downloads_roles.count
            result.roles_uploaded = uploads_roles.count

            failed = [op for op in result.passes if not op.success]
            result.success = not failed
            if failed:
                result.error_message = "; ".join(f"{op.name}: {op.error_message}" for op in failed)
        except Exception as e:
            self.logger.error(f"Sync run aborted: {e}", exc_info=True)
            result.success = False
            result.error_message = str(e)
        finally:
            result.end_time = datetime.now()
            self._state = SyncState.COMPLETED if result.success else SyncState.FAILED
            self.last_result = result
            self.logger.info(f"Sync finished in {result.duration:.2f}s - {result.summary()}")
            self.completed.publish(result)
            self._state = SyncState.IDLE

        return result

    async def _run_pass(self, name: str, run_pass: PassFunc) -> SyncOperationResult:
        outcome = await self.safe_execute(name, run_pass)
        if not outcome.success:
            return SyncOperationResult.failed(name, outcome.error)
        return SyncOperationResult(name=name, success=True, count=outcome.data or 0)

    # =========================================================================
    # PASSES
    # =========================================================================

    async def _download_users(self) -> int:
        """Refresh the signed-in user's local record from the remote profile."""
        user = self.session.current_user
        token = self.session.auth_token
        uid = self.session.remote_uid
        if user is None or not token or not uid:
            return 0

        try:
            profile = await self.remote_users.fetch_profile(uid, token)
        except REMOTE_FAILURES as e:
            self.logger.warning(f"Could not download profile for {user.email}: {e.code}")
            return 0
        if profile is None:
            return 0

        local = self.local_users.find_by_remote_uid(uid) or self.local_users.fetch(user.id)
        if local is None:
            return 0
        if local.needs_sync:
            # Unsynced local edits win until they are pushed
            return 0
        if (local.name, local.lastname, local.role) == (profile.name, profile.lastname, profile.role):
            return 0

        self.local_users.refresh_from_remote(local.id, profile)
        self.session.update_user(self.local_users.fetch(local.id))
        return 1

    async def _upload_users(self) -> int:
        """
        Create remote accounts for users registered offline.

        Records that already have a remote identifier are marked synced
        without an update: the background pass has no session for them, so
        their offline profile edits reach the remote on their next sign-in.
        Password content is never touched here.
        """
        uploaded = 0
        for record in self.local_users.get_users_needing_sync():
            if record.remote_uid:
                self.logger.debug(f"User {record.id} already has a remote account, marking synced")
                self.local_users.mark_as_synced(record.id)
                continue

            password = self.credentials.get(record.id)
            if not password:
                self.logger.info(f"User {record.email} awaits sign-in before it can be uploaded")
                continue

            try:
                remote_session = await self.remote_users.create_account(record.email, password)
            except RemoteAuthError as e:
                if e.account_exists:
                    # Remote account is authoritative; no field merge
                    self.logger.info(f"Remote account for {record.email} already exists, marking synced")
                    self.local_users.mark_as_synced(record.id)
                    self.credentials.forget(record.id)
                else:
                    self.logger.warning(f"Remote rejected account for {record.email} ({e.reason})")
                continue
            except REMOTE_FAILURES as e:
                self.logger.warning(f"Upload of {record.email} failed, will retry: {e.code}")
                continue

            record.remote_uid = remote_session.uid
            if remote_session.access_token:
                try:
                    await self.remote_users.save_profile(record, remote_session.access_token)
                except REMOTE_FAILURES as e:
                    self.logger.warning(f"Profile upload for {record.email} failed: {e.code}")

            self.local_users.mark_as_synced(record.id, remote_session.uid)
            self.credentials.forget(record.id)
            uploaded += 1
            self.logger.info(f"Uploaded {record.email} (uid {remote_session.uid})")

        return uploaded

    async def _download_roles(self) -> int:
        token = self.session.auth_token
        if not token:
            return 0

        downloaded = 0
        for role in await self.remote_roles.fetch_all(token):
            if self.local_roles.needs_sync(role.id):
                continue
            try:
                if self.local_roles.upsert_from_sync(role):
                    downloaded += 1
            except ConflictError as e:
                self.logger.warning(f"Role {role.id} ({role.name}) conflicts locally, skipped: {e.message}")
        return downloaded

    async def _upload_roles(self) -> int:
        token = self.session.auth_token
        if not token:
            return 0

        uploaded = 0
        for role in self.local_roles.fetch_all():
            try:
                remote_role = await self.remote_roles.fetch(role.id, token)
                if remote_role is None:
                    await self.remote_roles.insert(role, token)
                    uploaded += 1
                elif self.local_roles.needs_sync(role.id) and not role.same_content(remote_role):
                    await self.remote_roles.update(role, token)
                    uploaded += 1
                self.local_roles.mark_as_synced(role.id)
            except REMOTE_FAILURES as e:
                self.logger.warning(f"Upload of role {role.id} failed: {e.code}")
        return uploaded
