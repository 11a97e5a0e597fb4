"""Cooperative cancellation for upload batches."""

from dataclasses import dataclass


@dataclass
class CancellationToken:
    """Shared flag checked between file transfers.

    ``settling`` stays true from the cancel request until the batch that
    observed it has finished resetting, so the UI can show a "cancelling"
    state and a new batch cannot start in the meantime.
    """

    _cancelled: bool = False
    _settling: bool = False

    def request_cancel(self) -> None:
        self._cancelled = True
        self._settling = True

    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def settling(self) -> bool:
        return self._settling

    def reset(self) -> None:
        """Clear the flag once the owning batch has stopped."""
        self._cancelled = False
        self._settling = False
