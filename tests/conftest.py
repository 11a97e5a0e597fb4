"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

import pytest

from artwork_sessions.config import Settings
from artwork_sessions.containers import AppContainer
from artwork_sessions.domain.certificates import MintedCertificate, OrphanedObject
from artwork_sessions.domain.sessions import STATUS_DRAFT, SessionRecord, SessionView
from artwork_sessions.domain.uploads import (
    CandidateFile,
    Notification,
    StoredObject,
)
from artwork_sessions.errors import (
    ConfigurationError,
    LedgerError,
    TransferError,
)
from artwork_sessions.services.completion import SessionCompletionController
from artwork_sessions.services.orphans import OrphanRegistry, OrphanRepository
from artwork_sessions.services.sessions import SessionLedger, SessionService
from artwork_sessions.services.uploads import StorageTransferClient

MIB = 1024 * 1024


def make_file(
    filename: str, size: int = 2 * MIB, content_type: str = "image/jpeg"
) -> CandidateFile:
    return CandidateFile(
        filename=filename,
        content_type=content_type,
        size=size,
        content=filename.encode(),
    )


@dataclass
class InMemorySessionLedger(SessionLedger):
    """In-memory session ledger for tests."""

    sessions: dict[str, SessionRecord] = field(default_factory=dict)
    certificates: dict[str, MintedCertificate] = field(default_factory=dict)
    mint_attributes: dict[str, dict[str, str]] = field(default_factory=dict)
    failing_appends: set[str] = field(default_factory=set)
    refused_appends: set[str] = field(default_factory=set)
    fail_status: bool = False
    fail_mint: bool = False
    status_calls: list[tuple[str, str]] = field(default_factory=list)
    _counter: int = 0

    async def create_session(self, owner: str, title: str, description: str) -> str:
        self._counter += 1
        session_id = f"session-{self._counter}"
        now = datetime(2026, 1, 1, tzinfo=UTC) + timedelta(minutes=self._counter)
        self.sessions[session_id] = SessionRecord(
            id=session_id,
            owner=owner,
            title=title,
            description=description,
            status=STATUS_DRAFT,
            created_at=now,
            updated_at=now,
        )
        return session_id

    async def append_photo(self, session_id: str, url: str) -> bool:
        if any(marker in url for marker in self.failing_appends):
            raise LedgerError("ledger unavailable")
        if any(marker in url for marker in self.refused_appends):
            return False
        record = self._require(session_id)
        self.sessions[session_id] = replace(
            record, photo_urls=(*record.photo_urls, url)
        )
        return True

    async def remove_photo(self, session_id: str, url: str) -> bool:
        record = self._require(session_id)
        self.sessions[session_id] = replace(
            record, photo_urls=tuple(u for u in record.photo_urls if u != url)
        )
        return True

    async def set_status(self, session_id: str, status: str) -> bool:
        self.status_calls.append((session_id, status))
        if self.fail_status:
            raise LedgerError("status update rejected")
        record = self._require(session_id)
        self.sessions[session_id] = replace(record, status=status)
        return True

    async def mint_certificate(
        self, session_id: str, recipient: str, attributes: dict[str, str]
    ) -> str:
        if self.fail_mint:
            raise LedgerError("mint failed")
        self._require(session_id)
        token_id = str(len(self.certificates) + 1)
        self.certificates[session_id] = MintedCertificate(
            token_id=token_id, session_id=session_id
        )
        self.mint_attributes[session_id] = {"recipient": recipient, **attributes}
        return token_id

    async def get_session(self, session_id: str) -> SessionRecord | None:
        return self.sessions.get(session_id)

    async def list_sessions(self, owner: str) -> list[SessionRecord]:
        return [record for record in self.sessions.values() if record.owner == owner]

    async def get_certificate(self, session_id: str) -> MintedCertificate | None:
        return self.certificates.get(session_id)

    def _require(self, session_id: str) -> SessionRecord:
        record = self.sessions.get(session_id)
        if record is None:
            raise LedgerError("Session not found")
        return record


@dataclass
class InMemoryStorageClient(StorageTransferClient):
    """Fake storage that records transfers and can fail or block per file."""

    configured: bool = True
    failing: set[str] = field(default_factory=set)
    gates: dict[str, asyncio.Event] = field(default_factory=dict)
    transfers: list[str] = field(default_factory=list)
    started: list[str] = field(default_factory=list)

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("Storage configuration not found")

    async def transfer(self, session_id: str, file: CandidateFile) -> StoredObject:
        self.ensure_configured()
        self.started.append(file.filename)
        gate = self.gates.get(file.filename)
        if gate is not None:
            await gate.wait()
        if file.filename in self.failing:
            raise TransferError(f"Upload of {file.filename} failed: AccessDenied")
        self.transfers.append(file.filename)
        key = f"sessions/{session_id}/1700000000000-abcd1234-{file.filename}"
        return StoredObject(key=key, url=f"https://cdn.test/{key}")


@dataclass
class RecordingNotifier:
    """Notifier that keeps every notification."""

    notifications: list[Notification] = field(default_factory=list)

    def __call__(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def kinds(self) -> list[str]:
        return [notification.kind for notification in self.notifications]


@dataclass
class InMemoryOrphanRepository(OrphanRepository):
    """In-memory orphan repository for tests."""

    orphans: list[OrphanedObject] = field(default_factory=list)

    async def create_orphan(self, orphan: OrphanedObject) -> None:
        self.orphans.append(orphan)

    async def list_orphans(self, limit: int) -> list[OrphanedObject]:
        return list(reversed(self.orphans))[:limit]


def start_view(
    ledger: InMemorySessionLedger, owner: str = "artist", title: str = "Sunset"
) -> SessionView:
    """Create a session on the ledger and return its view."""
    return asyncio.run(
        SessionService(ledger).start_session(owner, title, "Oil on canvas")
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=(
            "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
            "eyJyb2xlIjoic2VydmljZV9yb2xlIn0."
            "c2lnbmF0dXJl"
        ),
        admin_token="admin-token",
    )


@pytest.fixture
def ledger() -> InMemorySessionLedger:
    return InMemorySessionLedger()


@pytest.fixture
def storage() -> InMemoryStorageClient:
    return InMemoryStorageClient()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@dataclass
class FakeStatusStorage:
    """Storage stand-in exposing only what the admin API reads."""

    configured: bool = False

    def status(self) -> dict[str, object]:
        return {"configured": self.configured}

    async def close(self) -> None:
        return None


@pytest.fixture
def container(
    settings: Settings,
    ledger: InMemorySessionLedger,
    notifier: RecordingNotifier,
) -> AppContainer:
    orphan_registry = OrphanRegistry(InMemoryOrphanRepository())

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        ledger=ledger,
        storage_client=FakeStatusStorage(),  # type: ignore[arg-type]
        session_service=SessionService(ledger),
        orphan_registry=orphan_registry,
        completion_controller=SessionCompletionController(ledger, notifier=notifier),
        notifier=notifier,
        close_resources=close_resources,
    )
