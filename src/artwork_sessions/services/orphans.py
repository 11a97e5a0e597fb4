"""Bookkeeping for storage objects the ledger never acknowledged."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from artwork_sessions.domain.certificates import OrphanedObject

logger = logging.getLogger(__name__)


class OrphanRepository(Protocol):
    """Persistence interface for orphaned storage objects."""

    async def create_orphan(self, orphan: OrphanedObject) -> None:
        """Persist an orphan candidate."""

    async def list_orphans(self, limit: int) -> list[OrphanedObject]:
        """Return the most recent orphan candidates."""


@dataclass
class OrphanRegistry:
    """Records orphan candidates for a later reconciliation sweep."""

    repository: OrphanRepository

    async def record(
        self, session_id: str, storage_key: str, url: str, reason: str
    ) -> OrphanedObject:
        """Record a stored object that is not referenced by its session."""
        orphan = OrphanedObject(
            session_id=session_id,
            storage_key=storage_key,
            url=url,
            reason=reason,
            recorded_at=datetime.now(tz=UTC),
        )
        logger.warning(
            "Orphaned object %s for session %s: %s", storage_key, session_id, reason
        )
        await self.repository.create_orphan(orphan)
        return orphan

    async def list_recent(self, limit: int = 50) -> list[OrphanedObject]:
        """Return recent orphan candidates."""
        return await self.repository.list_orphans(limit)
