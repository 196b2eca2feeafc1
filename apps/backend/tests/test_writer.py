"""Tests for the transactional event + metadata write."""

import json

import pytest

from app.models.event import PixelEvent, PixelMetadata
from app.models.identity import PixelUser
from app.schemas.events import PixelEventIn
from app.services.identity import upsert_client
from app.services.normalize import normalize_event
from app.services.writer import StorageError, write_event


def _normalized(**fields):
    raw = {"event_id": "e-1", "event_name": "page_view", "client_id": "c-1", "session_id": "s-1"}
    raw.update(fields)
    ev = PixelEventIn.model_validate(raw)
    return ev, normalize_event(ev, raw)


def test_writes_event_and_metadata(db, fresh, ctx):
    _, normalized = _normalized(page_location="/home", utm_source="ads")
    event_db_id = write_event(db, normalized, ctx)

    s = fresh()
    row = s.get(PixelEvent, event_db_id)
    assert row.event_id == "e-1"
    assert row.page_location == "/home"
    assert row.campaign == {"utm_source": "ads"}
    assert row.raw_payload["utm_source"] == "ads"
    assert row.bot_score == 0

    meta = s.query(PixelMetadata).one()
    assert meta.pixel_event_id == event_db_id
    assert meta.ip_address == "203.0.113.7"
    assert meta.user_agent == "pytest-agent/1.0"
    assert meta.request_id == "req-1"
    assert meta.geo_location is None
    assert json.loads(meta.headers)["x-request-id"] == "req-1"


def test_ids_are_assigned_per_row(db, ctx):
    _, first = _normalized()
    _, second = _normalized(event_id="e-2")
    assert write_event(db, first, ctx) != write_event(db, second, ctx)


def test_metadata_failure_rolls_back_event(db, fresh, ctx, inject_fault):
    _, normalized = _normalized()
    with inject_fault("pixel_metadata"):
        with pytest.raises(StorageError):
            write_event(db, normalized, ctx)

    s = fresh()
    assert s.query(PixelEvent).count() == 0
    assert s.query(PixelMetadata).count() == 0


def test_failure_also_discards_pending_identity_upsert(db, fresh, ctx, inject_fault):
    ev, normalized = _normalized()
    upsert_client(db, ev)
    with inject_fault("pixel_events"):
        with pytest.raises(StorageError):
            write_event(db, normalized, ctx)

    assert fresh().query(PixelUser).count() == 0
