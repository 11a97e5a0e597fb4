"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from artwork_sessions.adapters.s3_storage_client import S3StorageTransferClient
from artwork_sessions.adapters.supabase_orphan_repository import (
    SupabaseOrphanRepository,
)
from artwork_sessions.adapters.supabase_session_ledger import SupabaseSessionLedger
from artwork_sessions.config import (
    Settings,
    parse_content_types,
    storage_config_from_settings,
)
from artwork_sessions.domain.sessions import SessionView
from artwork_sessions.domain.uploads import Notifier
from artwork_sessions.services.completion import SessionCompletionController
from artwork_sessions.services.notifications import LoggingNotifier
from artwork_sessions.services.orphans import OrphanRegistry
from artwork_sessions.services.sessions import SessionLedger, SessionService
from artwork_sessions.services.uploads import UploadOrchestrator


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    ledger: SessionLedger
    storage_client: S3StorageTransferClient
    session_service: SessionService
    orphan_registry: OrphanRegistry
    completion_controller: SessionCompletionController
    notifier: Notifier
    close_resources: Callable[[], Awaitable[None]]

    def orchestrator_for(self, view: SessionView) -> UploadOrchestrator:
        """Create the upload orchestrator owning one session view."""
        return UploadOrchestrator(
            storage=self.storage_client,
            ledger=self.ledger,
            view=view,
            notifier=self.notifier,
            orphan_registry=self.orphan_registry,
            max_upload_bytes=self.settings.max_upload_bytes,
            allowed_content_types=parse_content_types(
                self.settings.allowed_content_types
            ),
        )


def build_container(
    settings: Settings | None = None, notifier: Notifier | None = None
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    resolved_notifier = notifier or LoggingNotifier()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    ledger = SupabaseSessionLedger(supabase_client)
    orphan_registry = OrphanRegistry(SupabaseOrphanRepository(supabase_client))
    storage_client = S3StorageTransferClient.create(
        storage_config_from_settings(resolved_settings)
    )

    async def close_resources() -> None:
        await storage_client.close()

    return AppContainer(
        settings=resolved_settings,
        ledger=ledger,
        storage_client=storage_client,
        session_service=SessionService(ledger),
        orphan_registry=orphan_registry,
        completion_controller=SessionCompletionController(
            ledger, notifier=resolved_notifier
        ),
        notifier=resolved_notifier,
        close_resources=close_resources,
    )
