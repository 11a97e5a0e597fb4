"""Session completion and certificate minting."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from artwork_sessions.domain.certificates import MintedCertificate
from artwork_sessions.domain.sessions import STATUS_COMPLETED, SessionView
from artwork_sessions.domain.uploads import Notification, Notifier
from artwork_sessions.errors import CompletionError, LedgerError
from artwork_sessions.services.notifications import (
    KIND_MINT_FAILED,
    KIND_MINTED,
    LoggingNotifier,
)
from artwork_sessions.services.sessions import SessionLedger

CREATION_METHOD = "physical_art_session"

logger = logging.getLogger(__name__)


@dataclass
class SessionCompletionController:
    """Flips a session to completed and mints its certificate.

    The status change and the mint are separate ledger calls. A mint that
    fails after the status flip leaves the session completed but unminted;
    :meth:`retry_mint` is the recovery path for that state.
    """

    ledger: SessionLedger
    notifier: Notifier = field(default_factory=LoggingNotifier)

    def can_complete(self, view: SessionView) -> bool:
        return view.can_complete

    async def complete(self, view: SessionView, recipient: str) -> MintedCertificate:
        """Complete the session and mint a certificate for the recipient."""
        if view.is_completed:
            raise CompletionError(
                f"Session {view.session_id} is already completed; retry the mint"
            )
        if view.photo_count == 0:
            raise CompletionError("A session needs at least one photo to complete")

        try:
            updated = await self.ledger.set_status(view.session_id, STATUS_COMPLETED)
        except LedgerError as exc:
            self._notify(KIND_MINT_FAILED, f"Could not complete session: {exc}")
            raise CompletionError(str(exc)) from exc
        if not updated:
            self._notify(KIND_MINT_FAILED, "Could not complete session")
            raise CompletionError(f"Ledger refused to complete {view.session_id}")
        view.with_status(STATUS_COMPLETED)
        logger.info("Session %s completed", view.session_id)

        return await self._mint(view, recipient)

    async def retry_mint(self, view: SessionView, recipient: str) -> MintedCertificate:
        """Mint for a session left completed without a certificate."""
        record = await self.ledger.get_session(view.session_id)
        if record is None:
            raise CompletionError(f"Session {view.session_id} not found")
        view.reconcile(record)
        if not record.is_completed:
            raise CompletionError(f"Session {view.session_id} is not completed")
        existing = await self.ledger.get_certificate(view.session_id)
        if existing is not None:
            raise CompletionError(
                f"Certificate {existing.token_id} already minted for {view.session_id}"
            )
        return await self._mint(view, recipient)

    async def _mint(self, view: SessionView, recipient: str) -> MintedCertificate:
        attributes = {
            "creation_method": CREATION_METHOD,
            "total_photos": str(view.photo_count),
            "completed_at": datetime.now(tz=UTC).isoformat(),
        }
        try:
            token_id = await self.ledger.mint_certificate(
                view.session_id, recipient, attributes
            )
        except LedgerError as exc:
            logger.error(
                "Session %s completed but certificate mint failed: %s",
                view.session_id,
                exc,
            )
            self._notify(KIND_MINT_FAILED, f"Certificate mint failed: {exc}")
            raise CompletionError(str(exc)) from exc
        self._notify(KIND_MINTED, f"Certificate minted: token {token_id}")
        return MintedCertificate(token_id=token_id, session_id=view.session_id)

    def _notify(self, kind: str, message: str) -> None:
        self.notifier(Notification(kind=kind, message=message))
