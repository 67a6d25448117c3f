# =============================================================================
# login_core/offline/credential_cache.py
# In-Memory Plaintext Credentials for Offline-Registered Users
# =============================================================================
"""
Creating a remote account needs the plaintext password, while the local
store only keeps its hash. For users registered offline the plaintext is
held here, in memory only, until the upload pass creates the remote
account. Nothing is ever written to disk.
"""

from __future__ import annotations
import threading
from typing import Dict, Optional


class OfflineCredentialCache:
    """Plaintext passwords keyed by local user id."""

    def __init__(self):
        self._passwords: Dict[int, str] = {}
        self._lock = threading.Lock()

    def remember(self, user_id: int, password: str) -> None:
        with self._lock:
            self._passwords[user_id] = password

    def get(self, user_id: int) -> Optional[str]:
        with self._lock:
            return self._passwords.get(user_id)

    def forget(self, user_id: int) -> None:
        with self._lock:
            self._passwords.pop(user_id, None)

    def clear(self) -> None:
        with self._lock:
            self._passwords.clear()

    def __contains__(self, user_id: int) -> bool:
        with self._lock:
            return user_id in self._passwords

    def __len__(self) -> int:
        with self._lock:
            return len(self._passwords)

    def __repr__(self) -> str:
        return f"OfflineCredentialCache(entries={len(self)})"
