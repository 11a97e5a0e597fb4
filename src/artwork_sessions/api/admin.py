"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from artwork_sessions.containers import AppContainer
    from artwork_sessions.domain.certificates import OrphanedObject
    from artwork_sessions.domain.sessions import SessionRecord

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/storage/status", dependencies=[Depends(require_admin)])
async def storage_status(request: Request) -> dict[str, object]:
    """Report whether object storage is configured, without secrets."""
    container: AppContainer = request.app.state.container
    return container.storage_client.status()


@router.get("/sessions", dependencies=[Depends(require_admin)])
async def list_sessions(owner: str, request: Request) -> dict[str, object]:
    """Return the sessions owned by a user."""
    container: AppContainer = request.app.state.container
    sessions = await container.session_service.list_sessions(owner)
    return {"sessions": [_session_payload(record) for record in sessions]}


@router.get("/sessions/{session_id}", dependencies=[Depends(require_admin)])
async def session_detail(session_id: str, request: Request) -> dict[str, object]:
    """Return one session as recorded by the ledger."""
    container: AppContainer = request.app.state.container
    record = await container.ledger.get_session(session_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    payload = _session_payload(record)
    certificate = await container.ledger.get_certificate(session_id)
    payload["certificate_token_id"] = certificate.token_id if certificate else None
    return payload


@router.get("/orphans", dependencies=[Depends(require_admin)])
async def list_orphans(request: Request, limit: int = 50) -> dict[str, object]:
    """Return stored objects that no session references."""
    container: AppContainer = request.app.state.container
    orphans = await container.orphan_registry.list_recent(limit)
    return {"orphans": [_orphan_payload(orphan) for orphan in orphans]}


def _session_payload(record: SessionRecord) -> dict[str, object]:
    payload = asdict(record)
    payload["photo_urls"] = list(record.photo_urls)
    payload["created_at"] = record.created_at.isoformat()
    payload["updated_at"] = record.updated_at.isoformat()
    return payload


def _orphan_payload(orphan: OrphanedObject) -> dict[str, object]:
    payload = asdict(orphan)
    payload["recorded_at"] = orphan.recorded_at.isoformat()
    return payload
