"""Error taxonomy for the session upload pipeline."""


class ArtworkSessionError(Exception):
    """Base class for all pipeline errors."""


class ValidationError(ArtworkSessionError):
    """Input was rejected locally before any network activity."""


class ConfigurationError(ArtworkSessionError):
    """Object storage is not configured."""


class TransferError(ArtworkSessionError):
    """A single file could not be written to object storage."""


class LedgerError(ArtworkSessionError):
    """The session ledger rejected or failed to record a call."""


class ConcurrencyError(ArtworkSessionError):
    """An upload batch is already running for this session view."""


class CompletionError(ArtworkSessionError):
    """A session could not be completed or its certificate minted."""
