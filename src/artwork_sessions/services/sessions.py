"""Session lifecycle on top of the remote session ledger."""

import logging
from dataclasses import dataclass
from typing import Protocol

from artwork_sessions.domain.certificates import MintedCertificate
from artwork_sessions.domain.sessions import SessionRecord, SessionView
from artwork_sessions.errors import LedgerError, ValidationError

logger = logging.getLogger(__name__)


class SessionLedger(Protocol):
    """Remote system of record for sessions and their photos.

    Every call is an independent remote operation reflecting the ledger's
    state at invocation time; nothing is cached client-side.
    """

    async def create_session(self, owner: str, title: str, description: str) -> str:
        """Create a draft session and return its id."""

    async def append_photo(self, session_id: str, url: str) -> bool:
        """Append a photo URL to the session."""

    async def remove_photo(self, session_id: str, url: str) -> bool:
        """Remove a photo URL from the session."""

    async def set_status(self, session_id: str, status: str) -> bool:
        """Change the session lifecycle status."""

    async def mint_certificate(
        self, session_id: str, recipient: str, attributes: dict[str, str]
    ) -> str:
        """Mint a certificate token for the session and return its id."""

    async def get_session(self, session_id: str) -> SessionRecord | None:
        """Return a session by id, if present."""

    async def list_sessions(self, owner: str) -> list[SessionRecord]:
        """Return all sessions owned by a user."""

    async def get_certificate(self, session_id: str) -> MintedCertificate | None:
        """Return the certificate minted for a session, if any."""


@dataclass
class SessionService:
    """Creates and loads sessions into local views."""

    ledger: SessionLedger

    async def start_session(
        self, owner: str, title: str, description: str = ""
    ) -> SessionView:
        """Create a session on the ledger and return a fresh view of it."""
        if not owner.strip():
            raise ValidationError("An owner is required to start a session")
        if not title.strip():
            raise ValidationError("A title is required to start a session")
        session_id = await self.ledger.create_session(
            owner, title.strip(), description.strip()
        )
        record = await self.ledger.get_session(session_id)
        if record is None:
            raise LedgerError(f"Session {session_id} missing after creation")
        logger.info("Started session %s for %s", session_id, owner)
        return SessionView(session=record)

    async def load_session(self, session_id: str) -> SessionView | None:
        """Load a session view from the ledger."""
        record = await self.ledger.get_session(session_id)
        if record is None:
            return None
        view = SessionView(session=record)
        view.reconcile(record)
        return view

    async def refresh(self, view: SessionView) -> SessionView:
        """Reconcile a local view with the ledger's current state."""
        record = await self.ledger.get_session(view.session_id)
        if record is None:
            raise LedgerError(f"Session {view.session_id} not found")
        view.reconcile(record)
        return view

    async def list_sessions(self, owner: str) -> list[SessionRecord]:
        """Return the owner's sessions, newest first."""
        sessions = await self.ledger.list_sessions(owner)
        return sorted(sessions, key=lambda record: record.created_at, reverse=True)
