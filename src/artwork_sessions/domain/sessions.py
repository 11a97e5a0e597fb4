"""Domain models for art documentation sessions."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

STATUS_DRAFT = "draft"
STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"

SESSION_STATUSES = frozenset({STATUS_DRAFT, STATUS_ACTIVE, STATUS_COMPLETED})


@dataclass(frozen=True)
class SessionRecord:
    """Authoritative session state as held by the ledger."""

    id: str
    owner: str
    title: str
    description: str
    status: str
    created_at: datetime
    updated_at: datetime
    photo_urls: tuple[str, ...] = ()

    @property
    def is_completed(self) -> bool:
        """Return whether the session reached its terminal status."""
        return self.status == STATUS_COMPLETED


@dataclass(frozen=True)
class PhotoLogEntry:
    """One uploaded photo acknowledged by the ledger."""

    id: str
    filename: str
    uploaded_at: datetime
    description: str
    size: int
    url: str
    step: int
    storage_key: str | None = None


@dataclass
class SessionView:
    """Locally mutated copy of a session used for rendering.

    The ledger stays authoritative: :meth:`reconcile` rebuilds the photo log
    from a fresh :class:`SessionRecord` whenever the two disagree.
    """

    session: SessionRecord
    photos: list[PhotoLogEntry] = field(default_factory=list)

    @property
    def session_id(self) -> str:
        return self.session.id

    @property
    def photo_count(self) -> int:
        return len(self.photos)

    @property
    def is_completed(self) -> bool:
        return self.session.is_completed

    @property
    def can_complete(self) -> bool:
        """Completion requires at least one photo and a non-terminal status."""
        return self.photo_count > 0 and not self.is_completed

    def filenames(self) -> set[str]:
        """Return the filenames already present in the photo log."""
        return {photo.filename for photo in self.photos}

    def next_step(self) -> int:
        return self.photo_count + 1

    def append(self, entry: PhotoLogEntry) -> None:
        """Append an acknowledged photo to the local log."""
        self.photos.append(entry)
        self.session = replace(
            self.session, photo_urls=(*self.session.photo_urls, entry.url)
        )

    def remove_by_url(self, url: str) -> bool:
        """Drop the entry with a matching URL, returning whether one existed."""
        kept = [photo for photo in self.photos if photo.url != url]
        removed = len(kept) != len(self.photos)
        self.photos = kept
        self.session = replace(
            self.session,
            photo_urls=tuple(u for u in self.session.photo_urls if u != url),
        )
        return removed

    def with_status(self, status: str) -> None:
        self.session = replace(self.session, status=status)

    def reconcile(self, record: SessionRecord) -> None:
        """Rebuild the photo log against the ledger's URL list."""
        by_url = {photo.url: photo for photo in self.photos}
        rebuilt: list[PhotoLogEntry] = []
        for index, url in enumerate(record.photo_urls, start=1):
            existing = by_url.get(url)
            if existing is not None:
                rebuilt.append(existing)
                continue
            rebuilt.append(
                PhotoLogEntry(
                    id=f"{record.id}-{index}",
                    filename=filename_from_url(url),
                    uploaded_at=record.updated_at,
                    description=f"Step {index}",
                    size=0,
                    url=url,
                    step=index,
                )
            )
        self.session = record
        self.photos = rebuilt


def filename_from_url(url: str) -> str:
    """Return the original filename encoded in a storage URL."""
    name = PurePosixPath(unquote(urlparse(url).path)).name
    # Storage keys are "<millis>-<nonce>-<filename>".
    parts = name.split("-", 2)
    if len(parts) == 3 and parts[0].isdigit():  # noqa: PLR2004
        return parts[2]
    return name
