# =============================================================================
# login_core/models/remote.py
# Remote Authentication Session
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class RemoteSession:
    """What the remote auth provider hands back after create/sign-in."""
    uid: str
    email: str
    access_token: Optional[str] = field(default=None, repr=False)
    refresh_token: Optional[str] = field(default=None, repr=False)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)
