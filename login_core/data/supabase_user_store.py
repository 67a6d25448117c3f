# =============================================================================
# login_core/data/supabase_user_store.py
# Supabase Auth Accounts and User Profiles
# =============================================================================

from __future__ import annotations
from typing import Any, Optional
import logging

from login_core.errors import RemoteAuthError
from login_core.models import RemoteSession, UserRecord
from .remote_store import RemoteUserStore
from .supabase_client import SupabaseConnector, remote_errors

logger = logging.getLogger(__name__)


def _to_session(response: Any, email: str) -> RemoteSession:
    user = response.user
    session = response.session
    return RemoteSession(
        uid=str(user.id),
        email=getattr(user, "email", None) or email,
        access_token=session.access_token if session else None,
        refresh_token=session.refresh_token if session else None,
    )


class SupabaseUserStore(RemoteUserStore):
    """
    Supabase implementation of the remote user store.

    Profiles live in the `users` table keyed by the auth user id. Row level
    security only exposes the signed-in user's own row, so there is no
    bulk fetch.
    """

    TABLE = "users"

    def __init__(self, connector: SupabaseConnector):
        self.connector = connector

    async def create_account(self, email: str, password: str) -> RemoteSession:
        async with self.connector.session() as client:
            async with remote_errors("create_account"):
                response = await client.auth.sign_up({"email": email, "password": password})

        if response.user is None:
            raise RemoteAuthError("Sign-up returned no user", operation="create_account")
        # With email confirmation on, an existing address comes back as a
        # user without identities instead of an error
        identities = getattr(response.user, "identities", None)
        if identities is not None and len(identities) == 0:
            raise RemoteAuthError(
                "Account already exists",
                reason=RemoteAuthError.ALREADY_EXISTS,
                operation="create_account",
            )

        logger.info(f"Created remote account for {email}")
        return _to_session(response, email)

    async def sign_in(self, email: str, password: str) -> RemoteSession:
        async with self.connector.session() as client:
            async with remote_errors("sign_in"):
                response = await client.auth.sign_in_with_password(
                    {"email": email, "password": password}
                )

        if response.user is None or response.session is None:
            raise RemoteAuthError(
                "Sign-in returned no session",
                reason=RemoteAuthError.INVALID_CREDENTIALS,
                operation="sign_in",
            )
        return _to_session(response, email)

    async def sign_out(self, session: RemoteSession) -> None:
        if not session.access_token:
            return
        async with self.connector.session() as client:
            async with remote_errors("sign_out"):
                await client.auth.admin.sign_out(session.access_token)

    async def update_password_with_old(self, email: str, old_password: str, new_password: str) -> None:
        async with self.connector.session() as client:
            async with remote_errors("update_password"):
                await client.auth.sign_in_with_password({"email": email, "password": old_password})
                await client.auth.update_user({"password": new_password})
        logger.info(f"Remote password updated for {email}")

    async def fetch_profile(self, uid: str, token: str) -> Optional[UserRecord]:
        async with self.connector.session(token) as client:
            async with remote_errors("fetch_profile"):
                response = (
                    await client.table(self.TABLE)
                    .select("*")
                    .eq("id", uid)
                    .limit(1)
                    .execute()
                )
        if not response.data:
            return None
        return UserRecord.from_remote_profile(response.data[0])

    async def save_profile(self, record: UserRecord, token: str) -> bool:
        if not record.remote_uid:
            return False
        async with self.connector.session(token) as client:
            async with remote_errors("save_profile"):
                await client.table(self.TABLE).upsert(record.to_remote_profile()).execute()
        return True

    async def delete_profile(self, uid: str, token: str) -> bool:
        async with self.connector.session(token) as client:
            async with remote_errors("delete_profile"):
                response = await client.table(self.TABLE).delete().eq("id", uid).execute()
        return bool(response.data)
