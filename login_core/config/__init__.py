# =============================================================================
# login_core/config/__init__.py
# =============================================================================

from .settings import Settings, load_settings, DEFAULT_CHECK_HOSTS, DEFAULT_DB_PATH

__all__ = ["Settings", "load_settings", "DEFAULT_CHECK_HOSTS", "DEFAULT_DB_PATH"]
