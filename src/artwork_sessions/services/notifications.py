"""Outcome notifications for the upload pipeline."""

import logging
from dataclasses import dataclass

from artwork_sessions.domain.uploads import Notification

KIND_VALIDATION = "validation"
KIND_SUCCESS = "success"
KIND_CANCELLED = "cancelled"
KIND_PARTIAL_FAILURE = "partial_failure"
KIND_FAILURE = "failure"
KIND_BUSY = "busy"
KIND_REMOVED = "removed"
KIND_MINTED = "minted"
KIND_MINT_FAILED = "mint_failed"

_WARNING_KINDS = {
    KIND_VALIDATION,
    KIND_PARTIAL_FAILURE,
    KIND_FAILURE,
    KIND_BUSY,
    KIND_MINT_FAILED,
}


@dataclass
class LoggingNotifier:
    """Notifier that writes every outcome to the application log."""

    logger_name: str = "artwork_sessions.notifications"

    def __call__(self, notification: Notification) -> None:
        logger = logging.getLogger(self.logger_name)
        level = (
            logging.WARNING
            if notification.kind in _WARNING_KINDS
            else logging.INFO
        )
        logger.log(level, "[%s] %s", notification.kind, notification.message)
