"""Supabase-backed session ledger."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from supabase import Client

from artwork_sessions.domain.certificates import MintedCertificate
from artwork_sessions.domain.sessions import (
    SESSION_STATUSES,
    STATUS_DRAFT,
    SessionRecord,
)
from artwork_sessions.errors import LedgerError
from artwork_sessions.services.sessions import SessionLedger

_SESSION_COLUMNS = (
    "id, owner, title, description, status, photo_urls, created_at, updated_at"
)

logger = logging.getLogger(__name__)


@dataclass
class SupabaseSessionLedger(SessionLedger):
    """Supabase implementation of the session ledger.

    The Supabase client is synchronous, so each call runs in a worker thread
    to keep the upload loop responsive.
    """

    client: Client
    sessions_table: str = "art_sessions"
    certificates_table: str = "certificates"

    async def create_session(self, owner: str, title: str, description: str) -> str:
        """Insert a draft session row and return its id."""
        return await asyncio.to_thread(self._create_session, owner, title, description)

    async def append_photo(self, session_id: str, url: str) -> bool:
        """Append a photo URL to the session's list."""
        return await asyncio.to_thread(self._append_photo, session_id, url)

    async def remove_photo(self, session_id: str, url: str) -> bool:
        """Remove every occurrence of a photo URL from the session."""
        return await asyncio.to_thread(self._remove_photo, session_id, url)

    async def set_status(self, session_id: str, status: str) -> bool:
        """Update the session lifecycle status."""
        return await asyncio.to_thread(self._set_status, session_id, status)

    async def mint_certificate(
        self, session_id: str, recipient: str, attributes: dict[str, str]
    ) -> str:
        """Insert a certificate row for the session and return its token id."""
        return await asyncio.to_thread(
            self._mint_certificate, session_id, recipient, attributes
        )

    async def get_session(self, session_id: str) -> SessionRecord | None:
        """Return a session by id, if present."""
        return await asyncio.to_thread(self._get_session, session_id)

    async def list_sessions(self, owner: str) -> list[SessionRecord]:
        """Return all sessions for an owner."""
        return await asyncio.to_thread(self._list_sessions, owner)

    async def get_certificate(self, session_id: str) -> MintedCertificate | None:
        """Return the certificate minted for a session, if any."""
        return await asyncio.to_thread(self._get_certificate, session_id)

    def _create_session(self, owner: str, title: str, description: str) -> str:
        response = self._execute(
            "create session",
            self.client.table(self.sessions_table).insert(
                {
                    "owner": owner,
                    "title": title,
                    "description": description,
                    "status": STATUS_DRAFT,
                    "photo_urls": [],
                }
            ),
        )
        if not response.data:
            raise LedgerError("Failed to create session")
        return str(response.data[0]["id"])

    def _append_photo(self, session_id: str, url: str) -> bool:
        record = self._require_session(session_id)
        return self._write_photos(session_id, [*record.photo_urls, url])

    def _remove_photo(self, session_id: str, url: str) -> bool:
        record = self._require_session(session_id)
        return self._write_photos(
            session_id, [existing for existing in record.photo_urls if existing != url]
        )

    def _write_photos(self, session_id: str, photo_urls: list[str]) -> bool:
        response = self._execute(
            "update session photos",
            self.client.table(self.sessions_table)
            .update({"photo_urls": photo_urls, "updated_at": _now()})
            .eq("id", session_id),
        )
        return bool(response.data)

    def _set_status(self, session_id: str, status: str) -> bool:
        if status not in SESSION_STATUSES:
            raise LedgerError(f"Unknown session status: {status}")
        self._require_session(session_id)
        response = self._execute(
            "update session status",
            self.client.table(self.sessions_table)
            .update({"status": status, "updated_at": _now()})
            .eq("id", session_id),
        )
        return bool(response.data)

    def _mint_certificate(
        self, session_id: str, recipient: str, attributes: dict[str, str]
    ) -> str:
        record = self._require_session(session_id)
        traits = [
            {"trait_type": "session_id", "value": record.id},
            {"trait_type": "artist", "value": record.owner},
            {"trait_type": "art_title", "value": record.title},
            {"trait_type": "photo_count", "value": str(len(record.photo_urls))},
        ]
        traits.extend(
            {"trait_type": key, "value": value} for key, value in attributes.items()
        )
        traits.extend(
            {"trait_type": f"photo_{index}", "value": url}
            for index, url in enumerate(record.photo_urls, start=1)
        )
        response = self._execute(
            "mint certificate",
            self.client.table(self.certificates_table).insert(
                {
                    "session_id": record.id,
                    "recipient": recipient,
                    "name": record.title,
                    "description": record.description,
                    "image": record.photo_urls[0] if record.photo_urls else None,
                    "attributes": traits,
                }
            ),
        )
        if not response.data:
            raise LedgerError(f"Failed to mint certificate for session {session_id}")
        token_id = str(response.data[0]["id"])
        self._execute(
            "name certificate",
            self.client.table(self.certificates_table)
            .update({"name": f"{record.title} - #{token_id}"})
            .eq("id", token_id),
        )
        logger.info("Minted certificate %s for session %s", token_id, session_id)
        return token_id

    def _get_session(self, session_id: str) -> SessionRecord | None:
        response = self._execute(
            "fetch session",
            self.client.table(self.sessions_table)
            .select(_SESSION_COLUMNS)
            .eq("id", session_id)
            .limit(1),
        )
        if not response.data:
            return None
        return _session_from_row(response.data[0])

    def _require_session(self, session_id: str) -> SessionRecord:
        record = self._get_session(session_id)
        if record is None:
            raise LedgerError(f"Session not found: {session_id}")
        return record

    def _list_sessions(self, owner: str) -> list[SessionRecord]:
        response = self._execute(
            "list sessions",
            self.client.table(self.sessions_table)
            .select(_SESSION_COLUMNS)
            .eq("owner", owner)
            .order("created_at", desc=True),
        )
        return [_session_from_row(row) for row in response.data or []]

    def _get_certificate(self, session_id: str) -> MintedCertificate | None:
        response = self._execute(
            "fetch certificate",
            self.client.table(self.certificates_table)
            .select("id, session_id")
            .eq("session_id", session_id)
            .limit(1),
        )
        if not response.data:
            return None
        row = response.data[0]
        return MintedCertificate(token_id=str(row["id"]), session_id=row["session_id"])

    def _execute(self, action: str, query: Any) -> Any:
        try:
            return query.execute()
        except Exception as exc:
            logger.exception("Ledger call failed: %s", action)
            raise LedgerError(f"Failed to {action}: {exc}") from exc


def _now() -> str:
    return datetime.now(tz=UTC).isoformat()


def _session_from_row(row: dict[str, Any]) -> SessionRecord:
    return SessionRecord(
        id=str(row["id"]),
        owner=row["owner"],
        title=row["title"],
        description=row.get("description") or "",
        status=row["status"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
        photo_urls=tuple(row.get("photo_urls") or ()),
    )
