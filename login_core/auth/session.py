# =============================================================================
# login_core/auth/session.py
# Current Principal
# =============================================================================

from __future__ import annotations
import logging
from typing import Optional

from login_core.models import RemoteSession, UserRecord
from login_core.offline.events import EventChannel

logger = logging.getLogger(__name__)


class UserSession:
    """
    Holds the signed-in user and, when the sign-in went through the remote
    store, its remote session (uid and bearer token).

    Passed explicitly to the DALs, SyncService and reconciler.
    """

    def __init__(self):
        self._user: Optional[UserRecord] = None
        self._remote: Optional[RemoteSession] = None
        # Payload: the new current user, or None after sign-out
        self.changed: EventChannel[Optional[UserRecord]] = EventChannel("session.changed")

    def begin(self, user: UserRecord, remote_session: Optional[RemoteSession] = None) -> None:
        self._user = user
        self._remote = remote_session
        logger.info(
            f"Session started for {user.email} "
            f"({'remote' if self.has_remote_session else 'local only'})"
        )
        self.changed.publish(user)

    def clear(self) -> None:
        if self._user is not None:
            logger.info(f"Session ended for {self._user.email}")
        self._user = None
        self._remote = None
        self.changed.publish(None)

    def update_user(self, user: UserRecord) -> None:
        """Replace the cached record of the current principal without firing `changed`."""
        if self._user is not None and self._user.id == user.id:
            self._user = user

    @property
    def current_user(self) -> Optional[UserRecord]:
        return self._user

    @property
    def remote_session(self) -> Optional[RemoteSession]:
        return self._remote

    @property
    def auth_token(self) -> Optional[str]:
        return self._remote.access_token if self._remote else None

    @property
    def remote_uid(self) -> Optional[str]:
        if self._remote:
            return self._remote.uid
        return self._user.remote_uid if self._user else None

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def has_remote_session(self) -> bool:
        return bool(self._remote and self._remote.is_authenticated)

    @property
    def is_admin(self) -> bool:
        return bool(self._user and self._user.is_admin)
