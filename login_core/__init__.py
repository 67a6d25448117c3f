# =============================================================================
# login_core/__init__.py
# Hybrid Offline/Online Login Core
# =============================================================================
"""
Data layer for a login/registration application that keeps working offline.

Local SQLite is the single read source; Supabase is mirrored best-effort
and reconciled by the sync engine once connectivity returns.
"""

__version__ = "1.0.0"
