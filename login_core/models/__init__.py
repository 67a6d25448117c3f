# =============================================================================
# login_core/models/__init__.py
# Data Model for Users, Roles and Sync Runs
# =============================================================================

from .user import UserRecord, UserRole, utc_now
from .role import RoleRecord, DEFAULT_ROLES, RESERVED_ROLE_IDS
from .remote import RemoteSession
from .sync import SyncState, SyncOperationResult, SyncProgress, SyncResult
from .results import RegistrationMode, RegistrationResult, PasswordChangeResult

__all__ = [
    "UserRecord",
    "UserRole",
    "utc_now",
    "RoleRecord",
    "DEFAULT_ROLES",
    "RESERVED_ROLE_IDS",
    "RemoteSession",
    "SyncState",
    "SyncOperationResult",
    "SyncProgress",
    "SyncResult",
    "RegistrationMode",
    "RegistrationResult",
    "PasswordChangeResult",
]
