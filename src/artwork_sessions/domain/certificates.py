"""Domain models for certificates and storage bookkeeping."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class MintedCertificate:
    """A certificate token minted for a completed session."""

    token_id: str
    session_id: str


@dataclass(frozen=True)
class OrphanedObject:
    """A stored object the ledger never acknowledged."""

    session_id: str
    storage_key: str
    url: str
    reason: str
    recorded_at: datetime
