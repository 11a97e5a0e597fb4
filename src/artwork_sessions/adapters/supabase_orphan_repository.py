"""Supabase repository for orphaned storage objects."""

import asyncio
from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from artwork_sessions.domain.certificates import OrphanedObject
from artwork_sessions.services.orphans import OrphanRepository


@dataclass
class SupabaseOrphanRepository(OrphanRepository):
    """Supabase-backed orphan repository.

    Calls run in a worker thread, like the session ledger, since orphans are
    recorded from inside the upload loop.
    """

    client: Client
    table_name: str = "orphaned_objects"

    async def create_orphan(self, orphan: OrphanedObject) -> None:
        """Create an orphaned object row."""
        await asyncio.to_thread(self._create_orphan, orphan)

    async def list_orphans(self, limit: int) -> list[OrphanedObject]:
        """Return the most recent orphaned objects."""
        return await asyncio.to_thread(self._list_orphans, limit)

    def _create_orphan(self, orphan: OrphanedObject) -> None:
        self.client.table(self.table_name).insert(
            {
                "session_id": orphan.session_id,
                "storage_key": orphan.storage_key,
                "url": orphan.url,
                "reason": orphan.reason,
                "recorded_at": orphan.recorded_at.isoformat(),
            }
        ).execute()

    def _list_orphans(self, limit: int) -> list[OrphanedObject]:
        response = (
            self.client.table(self.table_name)
            .select("session_id, storage_key, url, reason, recorded_at")
            .order("recorded_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [
            OrphanedObject(
                session_id=row["session_id"],
                storage_key=row["storage_key"],
                url=row["url"],
                reason=row["reason"],
                recorded_at=datetime.fromisoformat(row["recorded_at"]),
            )
            for row in response.data or []
        ]
