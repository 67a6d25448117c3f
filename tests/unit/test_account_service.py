# =============================================================================
# tests/unit/test_account_service.py
# Unit Tests for AccountService
# =============================================================================

import pytest

from login_core.errors import InvalidCredentialsError, ValidationError
from login_core.models import RegistrationMode, UserRole


class TestRegister:
    """Test registration policy"""

    @pytest.mark.asyncio
    async def test_first_user_is_admin(self, services):
        first = await services.accounts.register("Ada", "Lovelace", "Ada@X.com", "secret1", "secret1")
        second = await services.accounts.register("Bob", "Smith", "bob@x.com", "secret1", "secret1")

        assert first.data.role == UserRole.ADMIN
        assert first.data.email == "ada@x.com"
        assert second.data.role == UserRole.USER

    @pytest.mark.asyncio
    async def test_validation_runs_before_storage(self, services, remote_users, set_online):
        await set_online(True)

        with pytest.raises(ValidationError) as exc:
            await services.accounts.register("Ada", "Lovelace", "ada@x.com", "secret1", "secret2")

        assert exc.value.field == "confirm_password"
        assert remote_users.calls == []
        assert services.local_users.count() == 0

    @pytest.mark.asyncio
    async def test_short_password(self, services):
        with pytest.raises(ValidationError) as exc:
            await services.accounts.register("Ada", "Lovelace", "ada@x.com", "abc", "abc")
        assert exc.value.field == "password"

    @pytest.mark.asyncio
    async def test_password_over_bcrypt_limit(self, services, remote_users, set_online):
        await set_online(True)

        with pytest.raises(ValidationError) as exc:
            await services.accounts.register("A", "B", "long@x.com", "a" * 80, "a" * 80)

        assert exc.value.field == "password"
        assert remote_users.calls == []
        assert services.local_users.count() == 0

    @pytest.mark.asyncio
    async def test_offline_registration_message(self, services):
        result = await services.accounts.register("Ada", "Lovelace", "ada@x.com", "secret1", "secret1")

        assert result.mode == RegistrationMode.LOCAL_ONLY
        assert "synced" in result.message


class TestSignIn:
    """Test sign-in policy"""

    @pytest.mark.asyncio
    async def test_bad_credentials_raise(self, services):
        await services.accounts.register("Ada", "Lovelace", "ada@x.com", "secret1", "secret1")

        with pytest.raises(InvalidCredentialsError):
            await services.accounts.sign_in("ada@x.com", "wrong12")

    @pytest.mark.asyncio
    async def test_empty_password_is_validation_error(self, services):
        with pytest.raises(ValidationError):
            await services.accounts.sign_in("ada@x.com", "")

    @pytest.mark.asyncio
    async def test_sign_in_and_out(self, services):
        await services.accounts.register("Ada", "Lovelace", "ada@x.com", "secret1", "secret1")

        user = await services.accounts.sign_in("ADA@x.com", "secret1")

        assert services.accounts.current_user.id == user.id
        assert services.accounts.is_admin
        await services.accounts.sign_out()
        assert services.accounts.current_user is None


class TestPasswordChange:
    """Test password change and pending reconciliation"""

    @pytest.mark.asyncio
    async def test_unchanged_password_rejected(self, services):
        with pytest.raises(ValidationError):
            await services.accounts.change_password("ada@x.com", "secret1", "secret1", "secret1")

    @pytest.mark.asyncio
    async def test_new_password_over_bcrypt_limit(self, services):
        await services.accounts.register("Ada", "Lovelace", "ada@x.com", "secret1", "secret1")

        with pytest.raises(ValidationError) as exc:
            await services.accounts.change_password("ada@x.com", "secret1", "a" * 80, "a" * 80)

        assert exc.value.field == "new_password"
        assert await services.accounts.sign_in("ada@x.com", "secret1") is not None

    @pytest.mark.asyncio
    async def test_pending_change_for_current_user(self, services, set_online):
        await set_online(True)
        await services.accounts.register("Ada", "Lovelace", "ada@x.com", "secret1", "secret1")
        await services.accounts.sign_in("ada@x.com", "secret1")
        assert services.accounts.pending_password_change_for_current_user() is None

        await set_online(False)
        result = await services.accounts.change_password("ada@x.com", "secret1", "secret2", "secret2")
        assert result.is_offline_change
        assert services.accounts.pending_password_change_for_current_user() is not None

        await set_online(True)
        synced = await services.accounts.sync_pending_password("secret1", "secret2")

        assert synced.success
        assert services.accounts.pending_password_change_for_current_user() is None
        assert not services.accounts.current_user.pending_password_change

    @pytest.mark.asyncio
    async def test_sync_pending_requires_session(self, services):
        result = await services.accounts.sync_pending_password("secret1", "secret2")
        assert result.error_code == "NOT_AUTHENTICATED"
