from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.dedupe import Deduplicator
from app.request_context import RequestContext
from app.schemas.events import PurchaseIn
from app.services.identity import upsert_client, upsert_session
from app.services.normalize import normalize_event
from app.services.validation import parse_event, validate_event
from app.services.writer import StorageError, write_event

logger = logging.getLogger("pixel.pipeline")

STORED = "stored"
DEDUPED = "deduped"
INVALID = "invalid"
STORAGE_ERROR = "storage_error"


@dataclass
class IngestOutcome:
    status: str
    id: Optional[int] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def ingest_event(
    db: Session,
    raw: Any,
    ctx: RequestContext,
    deduplicator: Deduplicator,
) -> IngestOutcome:
    """Validate -> dedupe -> normalize -> upsert identity -> write.

    Never raises for bad input or database faults; the outcome says what
    happened and the route decides the status code.
    """
    ev, parsed = parse_event(raw)
    if ev is None:
        return IngestOutcome(status=INVALID, errors=parsed.errors, warnings=parsed.warnings)

    check = validate_event(ev)
    if not check.ok:
        logger.debug("invalid event errors=%s", check.errors)
        return IngestOutcome(status=INVALID, errors=check.errors, warnings=check.warnings)

    if not deduplicator.should_store(ev.event_name, ev.event_id):
        logger.debug("duplicate event_name=%s event_id=%s", ev.event_name, ev.event_id)
        return IngestOutcome(status=DEDUPED, warnings=check.warnings)

    normalized = normalize_event(ev, raw, header_user_agent=ctx.user_agent)

    try:
        upsert_client(db, ev)
        upsert_session(db, ev)
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "identity upsert failed event_name=%s event_id=%s", ev.event_name, ev.event_id
        )
        return IngestOutcome(status=STORAGE_ERROR, warnings=check.warnings)

    try:
        event_db_id = write_event(db, normalized, ctx)
    except StorageError:
        return IngestOutcome(status=STORAGE_ERROR, warnings=check.warnings)

    return IngestOutcome(status=STORED, id=event_db_id, warnings=check.warnings)


def purchase_to_event(body: PurchaseIn, now_ms: Optional[int] = None) -> Dict[str, Any]:
    """Rewrite a legacy /purchases body as a "purchase" pixel event."""
    try:
        value = float(body.value or 0)
    except (TypeError, ValueError):
        # not a number; the validator reports missing:ecommerce.value
        value = body.value
    return {
        "event_id": body.purchase_id,
        "event_name": "purchase",
        "client_id": body.client_id,
        "session_id": body.session_id,
        "timestamp": body.timestamp or now_ms or int(time.time() * 1000),
        "ecommerce": {
            "value": value,
            "currency": body.currency,
            "items": body.items or [],
        },
        "message": "legacy /purchases",
    }
