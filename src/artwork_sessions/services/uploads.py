"""Upload orchestration for session photo batches."""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from artwork_sessions.domain.sessions import (
    STATUS_ACTIVE,
    STATUS_DRAFT,
    PhotoLogEntry,
    SessionView,
)
from artwork_sessions.domain.uploads import (
    BATCH_CANCELLED,
    BATCH_COMPLETED,
    BATCH_IDLE,
    BATCH_PARTIALLY_FAILED,
    BATCH_UPLOADING,
    BATCH_VALIDATING,
    FILE_COMPLETED,
    FILE_FAILED,
    FILE_UPLOADING,
    BatchFile,
    BatchResult,
    CandidateFile,
    IntakeResult,
    Notification,
    Notifier,
    ProgressEvent,
    ProgressListener,
    StoredObject,
)
from artwork_sessions.errors import (
    CompletionError,
    ConcurrencyError,
    ConfigurationError,
    LedgerError,
    TransferError,
)
from artwork_sessions.services.cancellation import CancellationToken
from artwork_sessions.services.intake import (
    ALLOWED_CONTENT_TYPES,
    DEFAULT_MAX_UPLOAD_BYTES,
    validate_files,
)
from artwork_sessions.services.notifications import (
    KIND_BUSY,
    KIND_CANCELLED,
    KIND_FAILURE,
    KIND_PARTIAL_FAILURE,
    KIND_REMOVED,
    KIND_SUCCESS,
    KIND_VALIDATION,
    LoggingNotifier,
)
from artwork_sessions.services.orphans import OrphanRegistry
from artwork_sessions.services.sessions import SessionLedger

logger = logging.getLogger(__name__)


class StorageTransferClient(Protocol):
    """Durable object storage for uploaded photos."""

    def ensure_configured(self) -> None:
        """Raise ConfigurationError when storage cannot be used."""

    async def transfer(self, session_id: str, file: CandidateFile) -> StoredObject:
        """Write one file and return where it can be retrieved."""


@dataclass
class UploadOrchestrator:
    """Drains a selected batch one file at a time into storage and the ledger.

    One orchestrator owns one :class:`SessionView`. Files are transferred
    sequentially in selection order; cancellation is honoured only between
    files, so an in-flight transfer always settles on its own first.
    """

    storage: StorageTransferClient
    ledger: SessionLedger
    view: SessionView
    notifier: Notifier = field(default_factory=LoggingNotifier)
    orphan_registry: OrphanRegistry | None = None
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    allowed_content_types: frozenset[str] = ALLOWED_CONTENT_TYPES
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    state: str = field(default=BATCH_IDLE, init=False)
    selection: list[BatchFile] = field(default_factory=list, init=False)
    step_description: str = field(default="", init=False)
    uploaded: int = field(default=0, init=False)
    total: int = field(default=0, init=False)
    progress: float = field(default=0.0, init=False)
    _listeners: list[ProgressListener] = field(default_factory=list, init=False)

    @property
    def is_busy(self) -> bool:
        return self.state == BATCH_UPLOADING or self.cancellation.settling

    @property
    def is_cancelling(self) -> bool:
        return self.cancellation.settling

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a progress listener and return its unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def select_files(
        self, files: Iterable[CandidateFile], step_description: str = ""
    ) -> IntakeResult:
        """Screen a new selection and stage the accepted files."""
        if self.is_busy:
            self._notify(KIND_BUSY, "An upload is already in progress")
            raise ConcurrencyError("Cannot select files while an upload is running")
        self.uploaded = 0
        self.total = 0
        self.progress = 0.0
        self.state = BATCH_VALIDATING
        result = validate_files(
            files,
            self.view.filenames(),
            max_bytes=self.max_upload_bytes,
            allowed_content_types=self.allowed_content_types,
        )
        message = result.rejection_message()
        if message:
            self._notify(KIND_VALIDATION, message)
        self.selection = [BatchFile(file=file) for file in result.accepted]
        self.step_description = step_description.strip()
        self.state = BATCH_IDLE
        return result

    def clear_selection(self) -> None:
        """Discard the staged batch without uploading it."""
        if self.state == BATCH_UPLOADING:
            raise ConcurrencyError("Cannot clear the selection during an upload")
        self._reset()

    def cancel_upload(self) -> bool:
        """Request that the running batch stops before its next file."""
        if self.state != BATCH_UPLOADING:
            return False
        logger.info("Cancellation requested for session %s", self.view.session_id)
        self.cancellation.request_cancel()
        return True

    async def upload_files(
        self, files: Iterable[CandidateFile], step_description: str = ""
    ) -> BatchResult:
        """Select a batch and upload whatever passes intake."""
        self.select_files(files, step_description)
        return await self.start_upload()

    async def start_upload(self) -> BatchResult:  # noqa: PLR0912, PLR0915
        """Upload the staged batch and return a summary of the run."""
        if self.is_busy:
            self._notify(KIND_BUSY, "An upload is already in progress")
            raise ConcurrencyError("An upload is already running for this session")
        if self.view.is_completed:
            self._reset()
            raise CompletionError("Completed sessions cannot receive new photos")
        if not self.selection:
            self._reset()
            return BatchResult(state=BATCH_IDLE, uploaded=0, total=0)

        session_id = self.view.session_id
        batch = list(self.selection)
        self.state = BATCH_UPLOADING
        self.total = len(batch)
        self.uploaded = 0
        self.progress = 0.0
        self.cancellation.reset()

        entries: list[PhotoLogEntry] = []
        failures: list[tuple[str, str]] = []
        attempted: list[str] = []
        cancelled = False
        try:
            self.storage.ensure_configured()
            for index, item in enumerate(batch):
                if self.cancellation.is_cancelled():
                    cancelled = True
                    break
                attempted.append(item.file.filename)
                item.status = FILE_UPLOADING
                self._emit(item, index)
                entry = await self._upload_one(session_id, item, index)
                if entry is None:
                    failures.append((item.file.filename, item.error or "failed"))
                else:
                    entries.append(entry)

            if entries:
                await self._activate_draft()

            if cancelled:
                state = BATCH_CANCELLED
            elif failures:
                state = BATCH_PARTIALLY_FAILED
            else:
                state = BATCH_COMPLETED
            result = BatchResult(
                state=state,
                uploaded=self.uploaded,
                total=self.total,
                entries=entries,
                failures=failures,
                attempted=attempted,
            )
            self._summarize(result)
            return result
        except ConfigurationError as exc:
            logger.error("Storage is not configured: %s", exc)
            self._notify(KIND_FAILURE, f"Upload failed: {exc}")
            raise
        except asyncio.CancelledError:
            logger.warning("Upload batch for session %s was interrupted", session_id)
            self._notify(
                KIND_CANCELLED,
                f"Upload interrupted: {self.uploaded} of {self.total} uploaded",
            )
            raise
        except Exception:
            logger.exception("Upload batch for session %s aborted", session_id)
            self._notify(KIND_FAILURE, "Upload failed unexpectedly")
            raise
        finally:
            self._reset()

    async def delete_photo(self, url: str) -> bool:
        """Remove a photo from the session; the stored object is kept."""
        if self.view.is_completed:
            raise CompletionError("Photos of a completed session cannot be removed")
        try:
            removed = await self.ledger.remove_photo(self.view.session_id, url)
        except LedgerError as exc:
            self._notify(KIND_FAILURE, f"Could not remove photo: {exc}")
            raise
        if not removed:
            self._notify(KIND_FAILURE, "Could not remove photo")
            return False
        self.view.remove_by_url(url)
        self._notify(KIND_REMOVED, "Photo removed")
        return True

    async def _upload_one(
        self, session_id: str, item: BatchFile, index: int
    ) -> PhotoLogEntry | None:
        filename = item.file.filename
        try:
            stored = await self.storage.transfer(session_id, item.file)
        except TransferError as exc:
            logger.warning("Transfer of %s failed: %s", filename, exc)
            self._fail(item, index, str(exc))
            return None

        try:
            appended = await self.ledger.append_photo(session_id, stored.url)
            error = "ledger rejected the photo"
        except LedgerError as exc:
            appended = False
            error = str(exc)
        if not appended:
            logger.warning("Ledger append for %s failed: %s", filename, error)
            await self._record_orphan(session_id, stored, error)
            item.url = stored.url
            self._fail(item, index, error)
            return None

        step = self.view.next_step()
        entry = PhotoLogEntry(
            id=uuid4().hex,
            filename=filename,
            uploaded_at=datetime.now(tz=UTC),
            description=self.step_description or f"Step {step}",
            size=item.file.size,
            url=stored.url,
            step=step,
            storage_key=stored.key,
        )
        self.view.append(entry)
        item.status = FILE_COMPLETED
        item.progress = 100
        item.url = stored.url
        self.uploaded += 1
        self.progress = self.uploaded / self.total * 100
        logger.info("Uploaded %s as step %s", filename, entry.step)
        self._emit(item, index)
        return entry

    def _fail(self, item: BatchFile, index: int, error: str) -> None:
        item.status = FILE_FAILED
        item.error = error
        self._emit(item, index)

    async def _record_orphan(
        self, session_id: str, stored: StoredObject, reason: str
    ) -> None:
        if self.orphan_registry is None:
            logger.warning("Orphaned object %s left in storage", stored.key)
            return
        try:
            await self.orphan_registry.record(
                session_id, stored.key, stored.url, reason
            )
        except Exception:
            logger.exception("Failed to record orphaned object %s", stored.key)

    async def _activate_draft(self) -> None:
        if self.view.session.status != STATUS_DRAFT:
            return
        try:
            updated = await self.ledger.set_status(self.view.session_id, STATUS_ACTIVE)
        except LedgerError:
            logger.exception("Failed to activate session %s", self.view.session_id)
            return
        if updated:
            self.view.with_status(STATUS_ACTIVE)

    def _summarize(self, result: BatchResult) -> None:
        failed = ", ".join(f"{name} ({error})" for name, error in result.failures)
        if result.state == BATCH_CANCELLED:
            message = (
                f"Upload cancelled: {result.uploaded} of {result.total} uploaded"
            )
            if failed:
                message = f"{message}; failed: {failed}"
            self._notify(KIND_CANCELLED, message)
        elif result.state == BATCH_PARTIALLY_FAILED:
            self._notify(
                KIND_PARTIAL_FAILURE,
                f"{result.uploaded} of {result.total} uploaded; failed: {failed}",
            )
        else:
            self._notify(KIND_SUCCESS, f"{result.uploaded} uploaded")

    def _emit(self, item: BatchFile, index: int) -> None:
        event = ProgressEvent(
            batch_state=self.state,
            filename=item.file.filename,
            index=index,
            file_status=item.status,
            uploaded=self.uploaded,
            total=self.total,
            progress=self.progress,
            url=item.url,
            error=item.error,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Progress listener failed")

    def _notify(self, kind: str, message: str) -> None:
        self.notifier(Notification(kind=kind, message=message))

    def _reset(self) -> None:
        self.selection = []
        self.step_description = ""
        self.uploaded = 0
        self.total = 0
        self.progress = 0.0
        self.cancellation.reset()
        self.state = BATCH_IDLE

