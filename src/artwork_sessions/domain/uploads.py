"""Domain models for photo upload batches."""

from collections.abc import Callable
from dataclasses import dataclass, field

from artwork_sessions.domain.sessions import PhotoLogEntry

BATCH_IDLE = "idle"
BATCH_VALIDATING = "validating"
BATCH_UPLOADING = "uploading"
BATCH_COMPLETED = "completed"
BATCH_CANCELLED = "cancelled"
BATCH_PARTIALLY_FAILED = "partially_failed"

FILE_PENDING = "pending"
FILE_UPLOADING = "uploading"
FILE_COMPLETED = "completed"
FILE_FAILED = "failed"


@dataclass(frozen=True)
class CandidateFile:
    """A file selected by the user for upload."""

    filename: str
    content_type: str
    size: int
    content: bytes = b""

    @classmethod
    def from_bytes(
        cls, filename: str, content: bytes, content_type: str
    ) -> "CandidateFile":
        """Build a candidate whose size is the length of its content."""
        return cls(
            filename=filename,
            content_type=content_type,
            size=len(content),
            content=content,
        )


@dataclass(frozen=True)
class FileRejection:
    """A candidate file refused at intake."""

    file: CandidateFile
    reason: str


@dataclass(frozen=True)
class IntakeResult:
    """Partition of a candidate batch into accepted and rejected files."""

    accepted: list[CandidateFile]
    rejected: list[FileRejection]

    def rejection_message(self) -> str | None:
        """Aggregate every rejection into one human-readable line."""
        if not self.rejected:
            return None
        details = "; ".join(
            f"{item.file.filename}: {item.reason}" for item in self.rejected
        )
        return f"{len(self.rejected)} file(s) rejected: {details}"


@dataclass
class BatchFile:
    """Per-file progress inside a pending upload batch."""

    file: CandidateFile
    status: str = FILE_PENDING
    progress: int = 0
    url: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class StoredObject:
    """An object written to durable storage."""

    key: str
    url: str


@dataclass(frozen=True)
class ProgressEvent:
    """One file transition published by the upload orchestrator."""

    batch_state: str
    filename: str
    index: int
    file_status: str
    uploaded: int
    total: int
    progress: float
    url: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class Notification:
    """A single user-facing outcome message."""

    kind: str
    message: str


@dataclass(frozen=True)
class BatchResult:
    """Outcome of one orchestrator run."""

    state: str
    uploaded: int
    total: int
    entries: list[PhotoLogEntry] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)
    attempted: list[str] = field(default_factory=list)


ProgressListener = Callable[[ProgressEvent], None]
Notifier = Callable[[Notification], None]
