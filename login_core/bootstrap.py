# =============================================================================
# login_core/bootstrap.py
# Service Wiring, Startup and Shutdown
# =============================================================================
"""
Explicit constructor wiring for the whole login core.

Usage:
    from login_core.bootstrap import build_services, start, shutdown
    from login_core.config import load_settings
    from login_core.logging import setup_logging

    settings = load_settings()
    setup_logging(level=settings.log_level, log_to_file=settings.log_to_file)
    services = build_services(settings)
    await start(services)
    ...
    await shutdown(services)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import logging

from login_core.auth import UserSession
from login_core.config import Settings
from login_core.data import (
    RemoteRoleStore,
    RemoteUserStore,
    SupabaseConnector,
    SupabaseRoleStore,
    SupabaseUserStore,
)
from login_core.errors import ErrorContext
from login_core.offline import (
    ConnectivityMonitor,
    CredentialReconciler,
    HybridRoleDal,
    HybridUserDal,
    LocalDatabase,
    LocalRoleStore,
    LocalUserStore,
    OfflineCredentialCache,
    SyncService,
)
from login_core.services.account_service import AccountService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Every long-lived object of the login core."""
    settings: Settings
    database: LocalDatabase
    local_users: LocalUserStore
    local_roles: LocalRoleStore
    remote_users: RemoteUserStore
    remote_roles: RemoteRoleStore
    monitor: ConnectivityMonitor
    session: UserSession
    credentials: OfflineCredentialCache
    users: HybridUserDal
    roles: HybridRoleDal
    sync: SyncService
    reconciler: CredentialReconciler
    accounts: AccountService


def build_services(
    settings: Settings,
    remote_users: Optional[RemoteUserStore] = None,
    remote_roles: Optional[RemoteRoleStore] = None,
    monitor: Optional[ConnectivityMonitor] = None,
) -> Services:
    """
    Wire the object graph. Remote stores and the monitor can be replaced
    (tests, other backends); by default they talk to Supabase.
    """
    database = LocalDatabase(settings.db_path)
    local_users = LocalUserStore(database)
    local_roles = LocalRoleStore(database)

    if remote_users is None or remote_roles is None:
        connector = SupabaseConnector.from_settings(settings)
        remote_users = remote_users or SupabaseUserStore(connector)
        remote_roles = remote_roles or SupabaseRoleStore(connector)

    monitor = monitor or ConnectivityMonitor.from_settings(settings)
    session = UserSession()
    credentials = OfflineCredentialCache()

    users = HybridUserDal(local_users, remote_users, monitor, session, credentials)
    roles = HybridRoleDal(local_roles, remote_roles, monitor, session)
    sync = SyncService(local_users, local_roles, remote_users, remote_roles, monitor, session, credentials)
    reconciler = CredentialReconciler(local_users, remote_users, monitor, session)
    accounts = AccountService(users, session, reconciler)

    return Services(
        settings=settings,
        database=database,
        local_users=local_users,
        local_roles=local_roles,
        remote_users=remote_users,
        remote_roles=remote_roles,
        monitor=monitor,
        session=session,
        credentials=credentials,
        users=users,
        roles=roles,
        sync=sync,
        reconciler=reconciler,
        accounts=accounts,
    )


async def start(services: Services, monitor_in_background: bool = True) -> None:
    """
    Bring the core up: local schema, connectivity, remote roles, sync.

    Raises:
        StorageError: the local database cannot be created
    """
    services.database.initialize()

    online = await services.monitor.check_connectivity_async()
    logger.info(f"Startup connectivity: {services.monitor.status.value}")
    if monitor_in_background:
        services.monitor.start_monitoring()

    with ErrorContext("Remote role initialization"):
        await services.roles.initialize()

    services.sync.attach()
    if online and services.sync.pending_count > 0:
        services.sync.schedule(services.sync.sync_if_pending())


async def shutdown(services: Services) -> None:
    """Stop monitoring, detach sync and wait for background work."""
    await services.monitor.stop_monitoring()
    services.sync.detach()
    await services.sync.wait_for_background()
    await services.monitor.changed.drain()
    await services.session.changed.drain()
    services.credentials.clear()
    logger.info("Login core shut down")
