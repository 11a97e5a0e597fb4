"""Tests for session lifecycle and local view reconciliation."""

import asyncio
from dataclasses import replace

import pytest

from artwork_sessions.domain.sessions import (
    STATUS_DRAFT,
    SessionView,
    filename_from_url,
)
from artwork_sessions.errors import ValidationError
from artwork_sessions.services.sessions import SessionService
from artwork_sessions.services.uploads import UploadOrchestrator
from tests.conftest import make_file


def test_start_session_creates_draft(ledger) -> None:
    service = SessionService(ledger)

    view = asyncio.run(service.start_session("artist", "  Sunset  ", "Oil"))

    assert view.session.status == STATUS_DRAFT
    assert view.session.title == "Sunset"
    assert view.photos == []
    assert view.can_complete is False
    assert ledger.sessions[view.session_id].owner == "artist"


@pytest.mark.parametrize(("owner", "title"), [("", "Sunset"), ("artist", "  ")])
def test_start_session_requires_owner_and_title(ledger, owner, title) -> None:
    service = SessionService(ledger)

    with pytest.raises(ValidationError):
        asyncio.run(service.start_session(owner, title))

    assert ledger.sessions == {}


def test_list_sessions_newest_first(ledger) -> None:
    service = SessionService(ledger)
    first = asyncio.run(service.start_session("artist", "First"))
    second = asyncio.run(service.start_session("artist", "Second"))
    asyncio.run(service.start_session("someone-else", "Other"))

    sessions = asyncio.run(service.list_sessions("artist"))

    assert [s.id for s in sessions] == [second.session_id, first.session_id]


def test_load_session_missing_returns_none(ledger) -> None:
    assert asyncio.run(SessionService(ledger).load_session("nope")) is None


def test_refresh_reconciles_with_ledger(ledger, storage, notifier) -> None:
    service = SessionService(ledger)
    view = asyncio.run(service.start_session("artist", "Sunset"))
    orchestrator = UploadOrchestrator(
        storage=storage, ledger=ledger, view=view, notifier=notifier
    )
    asyncio.run(orchestrator.upload_files([make_file("a.jpg"), make_file("b.jpg")]))
    kept, dropped = view.photos
    foreign = "https://cdn.test/sessions/x/1700000000001-ffff0000-c%20d.jpg"
    record = ledger.sessions[view.session_id]
    ledger.sessions[view.session_id] = replace(
        record, photo_urls=(kept.url, foreign)
    )

    asyncio.run(service.refresh(view))

    assert view.photos[0] is kept
    assert dropped.url not in {photo.url for photo in view.photos}
    assert view.photos[1].filename == "c d.jpg"
    assert view.photos[1].step == 2


def test_load_session_rebuilds_photo_log(ledger) -> None:
    service = SessionService(ledger)
    view = asyncio.run(service.start_session("artist", "Sunset"))
    url = "https://cdn.test/sessions/s/1700000000000-abcd1234-first.png"
    asyncio.run(ledger.append_photo(view.session_id, url))

    loaded = asyncio.run(service.load_session(view.session_id))

    assert isinstance(loaded, SessionView)
    assert loaded.filenames() == {"first.png"}


def test_filename_from_url_keeps_plain_names() -> None:
    assert filename_from_url("https://cdn.test/photos/plain.jpg") == "plain.jpg"
    assert filename_from_url("https://cdn.test/1-abc-x-y.jpg") == "x-y.jpg"
