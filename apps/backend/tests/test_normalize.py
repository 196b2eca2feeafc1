"""Tests for event normalization: times, legacy campaign mapping, defaults."""

from datetime import datetime, timezone

from app.schemas.events import PixelEventIn
from app.services.normalize import normalize_event, parse_occurred_at

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _normalize(header_user_agent=None, **fields):
    raw = {"event_id": "e-1", "event_name": "page_view", "client_id": "c-1"}
    raw.update(fields)
    return normalize_event(PixelEventIn.model_validate(raw), raw, header_user_agent, now=NOW)


def test_explicit_occurred_at_wins():
    n = _normalize(occurred_at="2026-01-15T08:30:00Z", timestamp=1700000000000)
    assert n.occurred_at == datetime(2026, 1, 15, 8, 30, tzinfo=timezone.utc)
    # the epoch column keeps what the pixel sent
    assert n.timestamp == 1700000000000


def test_legacy_timestamp_used_when_no_occurred_at():
    n = _normalize(timestamp=1700000000000)
    assert n.occurred_at == datetime.fromtimestamp(1700000000, tz=timezone.utc)
    assert n.timestamp == 1700000000000


def test_defaults_to_now():
    n = _normalize()
    assert n.occurred_at == NOW
    assert n.timestamp == int(NOW.timestamp() * 1000)


def test_timestamp_derived_from_occurred_at():
    n = _normalize(occurred_at="2026-01-15T08:30:00+00:00")
    assert n.timestamp == int(datetime(2026, 1, 15, 8, 30, tzinfo=timezone.utc).timestamp() * 1000)


def test_unparseable_occurred_at_falls_back():
    n = _normalize(occurred_at="yesterday-ish", timestamp=1700000000000)
    assert n.occurred_at == datetime.fromtimestamp(1700000000, tz=timezone.utc)


def test_out_of_range_legacy_timestamp_is_not_kept():
    n = _normalize(timestamp=1e20)
    assert n.occurred_at == NOW
    assert n.timestamp == int(NOW.timestamp() * 1000)

    n = _normalize(occurred_at="2026-01-15T08:30:00Z", timestamp=-1e20)
    assert n.timestamp == int(datetime(2026, 1, 15, 8, 30, tzinfo=timezone.utc).timestamp() * 1000)


def test_naive_iso_string_is_utc():
    assert parse_occurred_at("2026-01-15T08:30:00") == datetime(2026, 1, 15, 8, 30, tzinfo=timezone.utc)


def test_legacy_utm_fields_build_campaign():
    n = _normalize(utm_source="ads", utm_medium="cpc")
    assert n.campaign == {"utm_source": "ads", "utm_medium": "cpc"}
    assert n.utm_source == "ads"
    assert n.utm_medium == "cpc"
    assert n.utm_campaign is None


def test_click_ids_are_mapped():
    n = _normalize(gclid="g-1", msclkid="m-1")
    assert n.campaign == {"gclid": "g-1", "msclkid": "m-1"}


def test_structured_campaign_wins_over_legacy():
    n = _normalize(campaign={"source": "newsletter"}, utm_source="ads")
    assert n.campaign == {"source": "newsletter"}


def test_no_campaign_at_all_is_null():
    assert _normalize().campaign is None


def test_explicit_user_agent_wins():
    n = _normalize(header_user_agent="header-ua", user_agent="pixel-ua")
    assert n.user_agent == "pixel-ua"


def test_user_agent_falls_back_to_header():
    assert _normalize(header_user_agent="header-ua").user_agent == "header-ua"
    assert _normalize().user_agent is None


def test_numeric_fields_are_checked():
    n = _normalize(
        viewport={"width": 1280, "height": "tall"},
        timezone_offset="-180",
        bot_score="high",
    )
    assert n.viewport_width == 1280
    assert n.viewport_height is None
    assert n.timezone_offset is None
    assert n.bot_score == 0
    assert n.viewport == {"width": 1280, "height": "tall"}


def test_non_object_blobs_are_kept_verbatim():
    n = _normalize(viewport=[1280, 720], network="4g", campaign="spring")
    assert n.viewport == [1280, 720]
    assert n.viewport_width is None
    assert n.viewport_height is None
    assert n.network == "4g"
    assert n.campaign == "spring"


def test_finite_numbers_kept():
    n = _normalize(timezone_offset=-180, bot_score=0.7)
    assert n.timezone_offset == -180
    assert n.bot_score == 0.7


def test_referrer_chain_must_be_a_list():
    assert _normalize(referrer_chain="https://a").referrer_chain is None
    assert _normalize(referrer_chain=["https://a"]).referrer_chain == ["https://a"]


def test_raw_payload_is_verbatim():
    n = _normalize(some_future_field={"x": 1})
    assert n.raw_payload["some_future_field"] == {"x": 1}
    assert n.raw_payload["event_id"] == "e-1"
