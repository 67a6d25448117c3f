# =============================================================================
# login_core/data/supabase_client.py
# Supabase Client Factory and Error Translation
# =============================================================================

from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
import asyncio
import logging

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client
from supabase.lib.client_options import AsyncClientOptions
from supabase_auth.errors import (
    AuthApiError,
    AuthError,
    AuthRetryableError,
    AuthWeakPasswordError,
)

from login_core.config import Settings
from login_core.errors import (
    ConfigurationError,
    RemoteAuthError,
    RemoteAuthorizationError,
    RemoteStoreError,
    RemoteUnavailable,
)

logger = logging.getLogger(__name__)

# Supabase auth error codes -> RemoteAuthError.reason
_AUTH_REASONS = {
    "user_already_exists": RemoteAuthError.ALREADY_EXISTS,
    "email_exists": RemoteAuthError.ALREADY_EXISTS,
    "invalid_credentials": RemoteAuthError.INVALID_CREDENTIALS,
    "user_not_found": RemoteAuthError.USER_NOT_FOUND,
    "weak_password": RemoteAuthError.WEAK_PASSWORD,
    "user_banned": RemoteAuthError.DISABLED,
}

# PostgREST codes meaning "token missing/expired or row security said no"
_AUTHORIZATION_CODES = {"42501", "PGRST301", "PGRST302", "401", "403"}


def _auth_reason(error: AuthError) -> str:
    code = getattr(error, "code", None)
    if code in _AUTH_REASONS:
        return _AUTH_REASONS[code]
    # Older GoTrue servers send no code
    message = str(getattr(error, "message", error)).lower()
    if "already registered" in message or "already exists" in message:
        return RemoteAuthError.ALREADY_EXISTS
    if "invalid login credentials" in message:
        return RemoteAuthError.INVALID_CREDENTIALS
    return RemoteAuthError.UNKNOWN


def translate_error(error: Exception, operation: str) -> RemoteStoreError:
    """Map a supabase/httpx exception onto the remote error kinds."""
    if isinstance(error, RemoteStoreError):
        return error
    if isinstance(error, (httpx.TimeoutException, httpx.TransportError, AuthRetryableError,
                          asyncio.TimeoutError, ConnectionError)):
        return RemoteUnavailable(f"Remote service unreachable during {operation}", operation=operation)
    if isinstance(error, AuthWeakPasswordError):
        return RemoteAuthError("Password rejected as too weak", reason=RemoteAuthError.WEAK_PASSWORD, operation=operation)
    if isinstance(error, AuthApiError) and getattr(error, "status", None) in (502, 503, 504):
        return RemoteUnavailable(f"Remote service unavailable during {operation}", operation=operation)
    if isinstance(error, AuthError):
        reason = _auth_reason(error)
        return RemoteAuthError(f"Authentication failed during {operation}", reason=reason, operation=operation)
    if isinstance(error, APIError):
        code = str(getattr(error, "code", "") or "")
        if code in _AUTHORIZATION_CODES:
            return RemoteAuthorizationError(f"Not authorized for {operation}", operation=operation)
        return RemoteStoreError(f"Remote rejected {operation}: {error.message}", operation=operation,
                                details={"code": code})
    return RemoteStoreError(f"Unexpected remote failure during {operation}: {error}", operation=operation)


@asynccontextmanager
async def remote_errors(operation: str) -> AsyncIterator[None]:
    """
    Translate anything raised inside the block into a RemoteStoreError.

    Usage:
        async with remote_errors("sign_in"):
            response = await client.auth.sign_in_with_password(...)
    """
    try:
        yield
    except ConfigurationError:
        raise
    except Exception as e:
        translated = translate_error(e, operation)
        if translated is e:
            raise
        raise translated from e


class SupabaseConnector:
    """
    Builds short-lived, session-less async Supabase clients.

    Each remote operation gets its own client so the interactive user and
    background sync never share auth state.

    Usage:
        connector = SupabaseConnector.from_settings(settings)
        async with connector.session(token) as client:
            response = await client.table("roles").select("*").execute()
    """

    def __init__(self, url: Optional[str], key: Optional[str], timeout: float = 10.0):
        self.url = url
        self.key = key
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> SupabaseConnector:
        return cls(settings.supabase_url, settings.supabase_key, settings.remote_timeout)

    @property
    def configured(self) -> bool:
        return bool(self.url and self.key)

    async def client(self, token: Optional[str] = None) -> AsyncClient:
        """Create a client; with `token` every table call carries it as bearer."""
        if not self.configured:
            raise ConfigurationError(
                "Supabase credentials not configured (SUPABASE_URL / SUPABASE_KEY)",
                config_key="supabase",
            )
        options = AsyncClientOptions(
            persist_session=False,
            auto_refresh_token=False,
            postgrest_client_timeout=self.timeout,
        )
        client = await acreate_client(self.url, self.key, options=options)
        if token:
            client.postgrest.auth(token)
        return client

    @asynccontextmanager
    async def session(self, token: Optional[str] = None) -> AsyncIterator[AsyncClient]:
        client = await self.client(token)
        try:
            yield client
        finally:
            await self._close(client)

    @staticmethod
    async def _close(client: AsyncClient) -> None:
        postgrest = getattr(client, "_postgrest", None)
        if postgrest is None:
            return
        try:
            await postgrest.aclose()
        except (httpx.HTTPError, RuntimeError) as e:
            logger.debug(f"Error closing Supabase client: {e}")
