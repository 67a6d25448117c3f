# =============================================================================
# tests/unit/test_hybrid_role_dal.py
# Unit Tests for Offline-First Role Routing
# =============================================================================

import pytest

from login_core.errors import RemoteUnavailable, ValidationError
from login_core.models import RoleRecord


async def signed_in(services, remote_users, set_online):
    """Sign a remote user in so role writes carry a token"""
    remote_users.add_account("admin@x.com", "secret1", role=2)
    await set_online(True)
    await services.users.sign_in("admin@x.com", "secret1")


class TestInitialize:
    """Test remote seeding"""

    @pytest.mark.asyncio
    async def test_skipped_without_session(self, services, remote_roles, set_online):
        await set_online(True)
        assert await services.roles.initialize() == 0
        assert remote_roles.calls == []

    @pytest.mark.asyncio
    async def test_seeds_when_signed_in(self, services, remote_users, remote_roles, set_online):
        await signed_in(services, remote_users, set_online)
        assert await services.roles.initialize() == 3
        assert sorted(remote_roles.roles) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, services, remote_users, remote_roles, set_online):
        await signed_in(services, remote_users, set_online)
        remote_roles.fail_with = RemoteUnavailable("down")
        assert await services.roles.initialize() == 0


class TestRoleWrites:
    """Test role insert/update/delete"""

    @pytest.mark.asyncio
    async def test_offline_insert_assigns_next_id(self, services, remote_roles):
        role = RoleRecord(name="  Manager ")
        assert await services.roles.insert(role)

        assert role.id == 4
        assert role.name == "Manager"
        assert services.local_roles.needs_sync(4)
        assert remote_roles.calls == []

    @pytest.mark.asyncio
    async def test_online_insert_is_mirrored(self, services, remote_users, remote_roles, set_online):
        await signed_in(services, remote_users, set_online)
        await services.roles.insert(RoleRecord(name="Manager"))

        assert remote_roles.roles[4].name == "Manager"
        assert not services.local_roles.needs_sync(4)

    @pytest.mark.asyncio
    async def test_online_without_token_stays_pending(self, services, remote_roles, set_online):
        await set_online(True)
        await services.roles.insert(RoleRecord(name="Manager"))

        assert services.local_roles.needs_sync(4)
        assert remote_roles.calls == []

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, services):
        with pytest.raises(ValidationError):
            await services.roles.insert(RoleRecord(name="   "))

    @pytest.mark.asyncio
    async def test_update_falls_back_to_remote_insert(self, services, remote_users, remote_roles, set_online):
        await services.roles.insert(RoleRecord(name="Manager"))
        await signed_in(services, remote_users, set_online)

        assert await services.roles.update(RoleRecord(4, "Supervisor"))

        assert remote_roles.calls[-2:] == ["update", "insert"]
        assert remote_roles.roles[4].name == "Supervisor"
        assert not services.local_roles.needs_sync(4)

    @pytest.mark.asyncio
    async def test_update_missing_role(self, services):
        assert await services.roles.update(RoleRecord(99, "Ghost")) is False

    @pytest.mark.asyncio
    async def test_remote_failure_keeps_local_write(self, services, remote_users, remote_roles, set_online):
        await signed_in(services, remote_users, set_online)
        remote_roles.fail_with = RemoteUnavailable("down")

        assert await services.roles.insert(RoleRecord(name="Manager"))
        assert services.local_roles.fetch(4).name == "Manager"
        assert services.local_roles.needs_sync(4)

    @pytest.mark.asyncio
    async def test_builtin_roles_cannot_be_deleted(self, services):
        for role_id in (1, 2, 3):
            with pytest.raises(ValidationError):
                await services.roles.delete(role_id)
        assert len(await services.roles.fetch_all()) == 3

    @pytest.mark.asyncio
    async def test_delete_custom_role(self, services, remote_users, remote_roles, set_online):
        await signed_in(services, remote_users, set_online)
        await services.roles.insert(RoleRecord(name="Manager"))

        assert await services.roles.delete(4)
        assert await services.roles.fetch(4) is None
        assert 4 not in remote_roles.roles

    @pytest.mark.asyncio
    async def test_reads_are_local(self, services, remote_users, remote_roles, set_online):
        await signed_in(services, remote_users, set_online)
        remote_roles.calls.clear()

        assert (await services.roles.fetch_by_name("admin")).id == 2
        assert (await services.roles.fetch(1)).name == "User"
        assert remote_roles.calls == []
