# =============================================================================
# login_core/data/__init__.py
# Remote Store Contracts and Supabase Implementations
# =============================================================================

from .remote_store import RemoteUserStore, RemoteRoleStore
from .supabase_client import SupabaseConnector, remote_errors, translate_error
from .supabase_user_store import SupabaseUserStore
from .supabase_role_store import SupabaseRoleStore

__all__ = [
    "RemoteUserStore",
    "RemoteRoleStore",
    "SupabaseConnector",
    "remote_errors",
    "translate_error",
    "SupabaseUserStore",
    "SupabaseRoleStore",
]
