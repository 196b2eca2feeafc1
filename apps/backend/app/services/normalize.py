from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.schemas.events import PixelEventIn

# legacy flat field -> key in the structured campaign object
LEGACY_CAMPAIGN_FIELDS: Dict[str, str] = {
    "utm_source": "utm_source",
    "utm_medium": "utm_medium",
    "utm_campaign": "utm_campaign",
    "utm_content": "utm_content",
    "utm_term": "utm_term",
    "gclid": "gclid",
    "fbclid": "fbclid",
    "wbraid": "wbraid",
    "gbraid": "gbraid",
    "msclkid": "msclkid",
    "ttclid": "ttclid",
    "yclid": "yclid",
}


@dataclass
class NormalizedEvent:
    """Column values for one pixel_events row."""

    event_id: str
    event_name: str
    client_id: str
    session_id: Optional[str]
    timestamp: int
    occurred_at: datetime
    page_location: Optional[str]
    page_referrer: Optional[str]
    page_title: Optional[str]
    language: Optional[str]
    user_agent: Optional[str]
    viewport_width: Optional[float]
    viewport_height: Optional[float]
    timezone_offset: Optional[float]
    utm_source: Optional[str]
    utm_medium: Optional[str]
    utm_campaign: Optional[str]
    utm_content: Optional[str]
    utm_term: Optional[str]
    message: Optional[str]
    screen: Any
    viewport: Any
    network: Any
    performance: Any
    campaign: Any
    attribution: Any
    referrer_chain: Optional[list]
    navigation: Any
    click: Any
    form: Any
    engagement: Any
    ecommerce: Any
    browser_hints: Any
    experiment: Any
    validation_warnings: Any
    validation_errors: Any
    fbp: Optional[str]
    fbc: Optional[str]
    bot_score: float
    raw_payload: Dict[str, Any]

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


def finite_or_none(v: Any) -> Optional[float]:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return None
    if not math.isfinite(v):
        return None
    return v


def _from_epoch_ms(ms: float) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_occurred_at(v: Any) -> Optional[datetime]:
    """ISO-8601 string (``Z`` allowed) or epoch milliseconds; None if unusable."""
    if isinstance(v, str) and v:
        try:
            dt = datetime.fromisoformat(v.replace("Z", "+00:00"))
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    ms = finite_or_none(v)
    if ms is not None:
        return _from_epoch_ms(ms)
    return None


def resolve_times(ev: PixelEventIn, now: Optional[datetime] = None) -> tuple[datetime, int]:
    """Return (occurred_at, timestamp_ms).

    occurred_at: explicit field, else legacy epoch-ms ``timestamp``, else now.
    timestamp_ms: the ``timestamp`` the pixel sent when it maps to a real
    datetime, else derived from occurred_at. The two can disagree when only
    one was sent.
    """
    legacy_ms = finite_or_none(ev.timestamp)
    legacy_at = _from_epoch_ms(legacy_ms) if legacy_ms is not None else None

    occurred_at = parse_occurred_at(ev.occurred_at)
    if occurred_at is None and legacy_ms:
        occurred_at = legacy_at
    if occurred_at is None:
        occurred_at = now or datetime.now(timezone.utc)

    # out-of-range values (1e20) would overflow the BIGINT column
    if legacy_at is not None:
        timestamp_ms = int(legacy_ms)
    else:
        timestamp_ms = int(occurred_at.timestamp() * 1000)
    return occurred_at, timestamp_ms


def legacy_campaign(ev: PixelEventIn) -> Optional[Dict[str, Any]]:
    out = {}
    for field_name, key in LEGACY_CAMPAIGN_FIELDS.items():
        value = getattr(ev, field_name)
        if value is not None:
            out[key] = value
    return out or None


def resolve_campaign(ev: PixelEventIn) -> Any:
    if ev.campaign:
        return ev.campaign
    return legacy_campaign(ev)


def normalize_event(
    ev: PixelEventIn,
    raw: Dict[str, Any],
    header_user_agent: Optional[str] = None,
    now: Optional[datetime] = None,
) -> NormalizedEvent:
    """Map a validated inbound event onto pixel_events column values.

    ``raw`` is the record exactly as received and is stored verbatim.
    Expects the validator to have passed, so event_id/event_name/client_id
    are present.
    """
    occurred_at, timestamp_ms = resolve_times(ev, now)
    viewport = ev.viewport if isinstance(ev.viewport, dict) else {}
    bot_score = finite_or_none(ev.bot_score)

    return NormalizedEvent(
        event_id=ev.event_id,
        event_name=ev.event_name,
        client_id=ev.client_id,
        session_id=ev.session_id or None,
        timestamp=timestamp_ms,
        occurred_at=occurred_at,
        page_location=ev.page_location or None,
        page_referrer=ev.page_referrer or None,
        page_title=ev.page_title or None,
        language=ev.language or None,
        user_agent=ev.user_agent or header_user_agent or None,
        viewport_width=finite_or_none(viewport.get("width")),
        viewport_height=finite_or_none(viewport.get("height")),
        timezone_offset=finite_or_none(ev.timezone_offset),
        utm_source=ev.utm_source or None,
        utm_medium=ev.utm_medium or None,
        utm_campaign=ev.utm_campaign or None,
        utm_content=ev.utm_content or None,
        utm_term=ev.utm_term or None,
        message=ev.message or None,
        screen=ev.screen,
        viewport=ev.viewport,
        network=ev.network,
        performance=ev.performance,
        campaign=resolve_campaign(ev),
        attribution=ev.attribution,
        referrer_chain=ev.referrer_chain if isinstance(ev.referrer_chain, list) else None,
        navigation=ev.navigation,
        click=ev.click,
        form=ev.form,
        engagement=ev.engagement,
        ecommerce=ev.ecommerce,
        browser_hints=ev.browser_hints,
        experiment=ev.experiment,
        validation_warnings=ev.validation_warnings,
        validation_errors=ev.validation_errors,
        fbp=ev.fbp or None,
        fbc=ev.fbc or None,
        bot_score=bot_score if bot_score is not None else 0,
        raw_payload=raw,
    )
