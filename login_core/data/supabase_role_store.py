# =============================================================================
# login_core/data/supabase_role_store.py
# Supabase Roles Table
# =============================================================================

from __future__ import annotations
from typing import List, Optional
import logging

from login_core.models import DEFAULT_ROLES, RoleRecord
from .remote_store import RemoteRoleStore
from .supabase_client import SupabaseConnector, remote_errors

logger = logging.getLogger(__name__)


class SupabaseRoleStore(RemoteRoleStore):
    """Supabase implementation of the remote role store."""

    TABLE = "roles"

    def __init__(self, connector: SupabaseConnector):
        self.connector = connector

    async def initialize(self, token: str) -> int:
        """Seed the default roles if the remote table is empty."""
        async with self.connector.session(token) as client:
            async with remote_errors("initialize_roles"):
                response = await client.table(self.TABLE).select("id").limit(1).execute()
                if response.data:
                    return 0
                await (
                    client.table(self.TABLE)
                    .upsert([role.to_remote() for role in DEFAULT_ROLES], on_conflict="id")
                    .execute()
                )
        logger.info(f"Seeded {len(DEFAULT_ROLES)} default roles remotely")
        return len(DEFAULT_ROLES)

    async def fetch(self, role_id: int, token: str) -> Optional[RoleRecord]:
        async with self.connector.session(token) as client:
            async with remote_errors("fetch_role"):
                response = (
                    await client.table(self.TABLE)
                    .select("*")
                    .eq("id", role_id)
                    .limit(1)
                    .execute()
                )
        if not response.data:
            return None
        return RoleRecord.from_remote(response.data[0])

    async def fetch_all(self, token: str) -> List[RoleRecord]:
        async with self.connector.session(token) as client:
            async with remote_errors("fetch_roles"):
                response = await client.table(self.TABLE).select("*").order("id").execute()
        return [RoleRecord.from_remote(row) for row in response.data or []]

    async def insert(self, role: RoleRecord, token: str) -> bool:
        async with self.connector.session(token) as client:
            async with remote_errors("insert_role"):
                response = await client.table(self.TABLE).insert(role.to_remote()).execute()
        return bool(response.data)

    async def update(self, role: RoleRecord, token: str) -> bool:
        async with self.connector.session(token) as client:
            async with remote_errors("update_role"):
                response = (
                    await client.table(self.TABLE)
                    .update({"name": role.name, "description": role.description})
                    .eq("id", role.id)
                    .execute()
                )
        return bool(response.data)

    async def delete(self, role_id: int, token: str) -> bool:
        async with self.connector.session(token) as client:
            async with remote_errors("delete_role"):
                response = await client.table(self.TABLE).delete().eq("id", role_id).execute()
        return bool(response.data)
