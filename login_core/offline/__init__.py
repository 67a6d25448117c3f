# =============================================================================
# login_core/offline/__init__.py
# Offline-First Login Data Layer
# =============================================================================
"""
Offline-First Login Data Layer

The login works identically whether the remote store is reachable or not.

Architecture:
------------
┌─────────────────────────────────────────────────────────────────┐
│                   OFFLINE-FIRST LOGIN DATA LAYER                 │
├─────────────────────────────────────────────────────────────────┤
│                                                                  │
│   ┌──────────────────────────────────────────────────────────┐  │
│   │          HybridUserDal / HybridRoleDal                    │  │
│   │   (writes: local first, remote mirror; reads: local)      │  │
│   └──────────────────────────────────────────────────────────┘  │
│              │                           │                      │
│              ▼                           ▼                      │
│   ┌──────────────────┐        ┌──────────────────┐             │
│   │ ConnectivityMon. │        │ CredentialCache  │             │
│   │ (Online/Offline) │        │ (memory only)    │             │
│   └──────────────────┘        └──────────────────┘             │
│                                                                  │
│ ┌────────┐        ┌──────────┐                                  │
│ │Supabase│◄──────►│  SQLite  │                                  │
│ │(Cloud) │  Sync  │ (Local)  │                                  │
│ └────────┘        └──────────┘                                  │
│              ▲                                                   │
│   ┌──────────────────┐   ┌──────────────────────┐               │
│   │   SyncService    │   │ CredentialReconciler │               │
│   │ (background)     │   │ (interactive)        │               │
│   └──────────────────┘   └──────────────────────┘               │
└─────────────────────────────────────────────────────────────────┘

Usage:
------
from login_core.bootstrap import build_services, start

services = build_services(load_settings())
await start(services)
user = await services.users.sign_in("a@x.com", "secret1")
"""

# events first: login_core.auth.session depends on it
from .events import EventChannel
from .connection_manager import (
    ConnectivityMonitor,
    ConnectionStatus,
    ConnectionState,
)
from .local_database import LocalDatabase
from .local_user_store import LocalUserStore
from .local_role_store import LocalRoleStore
from .credential_cache import OfflineCredentialCache
from .hybrid_user_dal import HybridUserDal
from .hybrid_role_dal import HybridRoleDal
from .sync_engine import SyncService
from .credential_sync import CredentialReconciler

__all__ = [
    "EventChannel",
    "ConnectivityMonitor",
    "ConnectionStatus",
    "ConnectionState",
    "LocalDatabase",
    "LocalUserStore",
    "LocalRoleStore",
    "OfflineCredentialCache",
    "HybridUserDal",
    "HybridRoleDal",
    "SyncService",
    "CredentialReconciler",
]
