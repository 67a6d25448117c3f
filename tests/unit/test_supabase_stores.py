# =============================================================================
# tests/unit/test_supabase_stores.py
# Unit Tests for the Supabase Remote Stores (client mocked)
# =============================================================================

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from postgrest.exceptions import APIError
from supabase_auth.errors import AuthApiError, AuthRetryableError

from login_core.data import (
    SupabaseConnector,
    SupabaseRoleStore,
    SupabaseUserStore,
    translate_error,
)
from login_core.errors import (
    ConfigurationError,
    RemoteAuthError,
    RemoteAuthorizationError,
    RemoteStoreError,
    RemoteUnavailable,
)
from login_core.models import RoleRecord, UserRecord


@pytest.fixture
def mock_client():
    """Async Supabase client double"""
    client = MagicMock()
    client._postgrest = None
    client.auth.sign_up = AsyncMock()
    client.auth.sign_in_with_password = AsyncMock()
    client.auth.update_user = AsyncMock()
    client.auth.admin.sign_out = AsyncMock()
    return client


@pytest.fixture
def connector(mock_client):
    connector = SupabaseConnector("https://p.supabase.co", "anon-key", timeout=3)
    with patch("login_core.data.supabase_client.acreate_client", AsyncMock(return_value=mock_client)):
        yield connector


def auth_response(uid="uid-1", email="a@x.com", token="tok", identities=("email",)):
    user = MagicMock(id=uid, email=email, identities=list(identities))
    session = MagicMock(access_token=token, refresh_token="ref") if token else None
    return MagicMock(user=user, session=session)


def table_execute(client, data):
    """Make every table(...) chain end in an awaitable execute() returning `data`"""
    execute = AsyncMock(return_value=MagicMock(data=data))
    query = MagicMock()
    query.execute = execute
    for method in ("select", "eq", "limit", "order", "insert", "update", "upsert", "delete"):
        getattr(query, method).return_value = query
    client.table.return_value = query
    return query


class TestErrorTranslation:
    """Test mapping of client exceptions onto remote error kinds"""

    def test_network_errors_are_unavailable(self):
        assert isinstance(translate_error(httpx.ConnectTimeout("slow"), "op"), RemoteUnavailable)
        assert isinstance(translate_error(httpx.ConnectError("refused"), "op"), RemoteUnavailable)
        assert isinstance(translate_error(AuthRetryableError("retry", 0), "op"), RemoteUnavailable)

    @pytest.mark.parametrize("code,reason", [
        ("user_already_exists", RemoteAuthError.ALREADY_EXISTS),
        ("email_exists", RemoteAuthError.ALREADY_EXISTS),
        ("invalid_credentials", RemoteAuthError.INVALID_CREDENTIALS),
        ("user_banned", RemoteAuthError.DISABLED),
        ("something_new", RemoteAuthError.UNKNOWN),
    ])
    def test_auth_api_error_reasons(self, code, reason):
        error = translate_error(AuthApiError("nope", 400, code), "sign_in")
        assert isinstance(error, RemoteAuthError)
        assert error.reason == reason

    def test_auth_error_without_code_uses_message(self):
        error = translate_error(AuthApiError("User already registered", 422, None), "create_account")
        assert error.account_exists

    def test_postgrest_authorization(self):
        error = APIError({"message": "permission denied", "code": "42501", "hint": None, "details": None})
        assert isinstance(translate_error(error, "fetch"), RemoteAuthorizationError)

    def test_postgrest_other(self):
        error = APIError({"message": "bad column", "code": "42703", "hint": None, "details": None})
        translated = translate_error(error, "fetch")
        assert type(translated) is RemoteStoreError
        assert translated.details["code"] == "42703"


class TestSupabaseConnector:
    """Test client construction"""

    @pytest.mark.asyncio
    async def test_unconfigured_raises(self):
        with pytest.raises(ConfigurationError):
            await SupabaseConnector(None, None).client()

    @pytest.mark.asyncio
    async def test_token_attached_to_postgrest(self, connector, mock_client):
        await connector.client("tok")
        mock_client.postgrest.auth.assert_called_once_with("tok")


class TestSupabaseUserStore:
    """Test auth and profile calls"""

    @pytest.mark.asyncio
    async def test_create_account(self, connector, mock_client):
        mock_client.auth.sign_up.return_value = auth_response()
        session = await SupabaseUserStore(connector).create_account("a@x.com", "secret1")

        assert session.uid == "uid-1"
        assert session.access_token == "tok"
        mock_client.auth.sign_up.assert_awaited_once_with({"email": "a@x.com", "password": "secret1"})

    @pytest.mark.asyncio
    async def test_create_account_existing_obfuscated_user(self, connector, mock_client):
        mock_client.auth.sign_up.return_value = auth_response(token=None, identities=())
        with pytest.raises(RemoteAuthError) as exc:
            await SupabaseUserStore(connector).create_account("a@x.com", "secret1")
        assert exc.value.account_exists

    @pytest.mark.asyncio
    async def test_sign_in_wrong_password(self, connector, mock_client):
        mock_client.auth.sign_in_with_password.side_effect = AuthApiError(
            "Invalid login credentials", 400, "invalid_credentials"
        )
        with pytest.raises(RemoteAuthError) as exc:
            await SupabaseUserStore(connector).sign_in("a@x.com", "wrong1")
        assert exc.value.reason == RemoteAuthError.INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_sign_in_timeout(self, connector, mock_client):
        mock_client.auth.sign_in_with_password.side_effect = httpx.ReadTimeout("slow")
        with pytest.raises(RemoteUnavailable):
            await SupabaseUserStore(connector).sign_in("a@x.com", "secret1")

    @pytest.mark.asyncio
    async def test_update_password_with_old_signs_in_first(self, connector, mock_client):
        await SupabaseUserStore(connector).update_password_with_old("a@x.com", "secret1", "secret2")

        mock_client.auth.sign_in_with_password.assert_awaited_once_with(
            {"email": "a@x.com", "password": "secret1"}
        )
        mock_client.auth.update_user.assert_awaited_once_with({"password": "secret2"})

    @pytest.mark.asyncio
    async def test_fetch_profile(self, connector, mock_client):
        query = table_execute(mock_client, [{"id": "uid-1", "local_id": 3, "name": "Ada", "email": "a@x.com", "role": 2}])
        profile = await SupabaseUserStore(connector).fetch_profile("uid-1", "tok")

        assert profile.remote_uid == "uid-1"
        assert profile.name == "Ada"
        mock_client.table.assert_called_with("users")
        query.eq.assert_called_with("id", "uid-1")

    @pytest.mark.asyncio
    async def test_fetch_profile_missing(self, connector, mock_client):
        table_execute(mock_client, [])
        assert await SupabaseUserStore(connector).fetch_profile("uid-1", "tok") is None

    @pytest.mark.asyncio
    async def test_save_profile_requires_uid(self, connector, mock_client):
        query = table_execute(mock_client, [{}])
        store = SupabaseUserStore(connector)

        assert await store.save_profile(UserRecord(email="a@x.com"), "tok") is False
        assert await store.save_profile(UserRecord(email="a@x.com", remote_uid="uid-1"), "tok") is True
        assert query.upsert.call_args[0][0]["id"] == "uid-1"


class TestSupabaseRoleStore:
    """Test role table calls"""

    @pytest.mark.asyncio
    async def test_fetch_all(self, connector, mock_client):
        table_execute(mock_client, [{"id": 1, "name": "User", "description": None}, {"id": 5, "name": "Manager"}])
        roles = await SupabaseRoleStore(connector).fetch_all("tok")
        assert [r.id for r in roles] == [1, 5]

    @pytest.mark.asyncio
    async def test_initialize_seeds_empty_table(self, connector, mock_client):
        query = table_execute(mock_client, [])
        assert await SupabaseRoleStore(connector).initialize("tok") == 3
        seeded = query.upsert.call_args[0][0]
        assert [row["id"] for row in seeded] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_initialize_skips_populated_table(self, connector, mock_client):
        query = table_execute(mock_client, [{"id": 1}])
        assert await SupabaseRoleStore(connector).initialize("tok") == 0
        query.upsert.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_missing_row(self, connector, mock_client):
        table_execute(mock_client, [])
        assert await SupabaseRoleStore(connector).update(RoleRecord(9, "Ghost"), "tok") is False

    @pytest.mark.asyncio
    async def test_authorization_failure(self, connector, mock_client):
        query = table_execute(mock_client, [])
        query.execute.side_effect = APIError({"message": "JWT expired", "code": "PGRST301", "hint": None, "details": None})
        with pytest.raises(RemoteAuthorizationError):
            await SupabaseRoleStore(connector).fetch(1, "tok")
