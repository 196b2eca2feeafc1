from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.dedupe import Deduplicator
from app.request_context import RequestContext
from app.services.identity import upsert_client, upsert_session
from app.services.normalize import normalize_event
from app.services.validation import parse_event, validate_event
from app.services.writer import insert_batch_metadata_row, insert_event_row

logger = logging.getLogger("pixel.bulk")


@dataclass
class BatchResult:
    ingested: int = 0
    storage_error: bool = False


def ingest_batch(
    db: Session,
    events: Any,
    ctx: RequestContext,
    deduplicator: Deduplicator,
) -> BatchResult:
    """Ingest a list of pixel records in a single transaction.

    Invalid and duplicate items are skipped and only lower the count.
    A database error anywhere rolls back the whole batch, including items
    inserted before it; the dedupe registrations made so far are kept.
    One metadata row (pointing at BATCH_EVENT_REF) covers the batch.
    """
    if not isinstance(events, list) or not events:
        return BatchResult()

    ingested = 0
    skipped_invalid = 0
    skipped_dup = 0
    try:
        for raw in events:
            ev, _ = parse_event(raw)
            if ev is None or not validate_event(ev).ok:
                skipped_invalid += 1
                continue
            if not deduplicator.should_store(ev.event_name, ev.event_id):
                skipped_dup += 1
                continue

            normalized = normalize_event(ev, raw, header_user_agent=ctx.user_agent)
            upsert_client(db, ev, minimal=True)
            upsert_session(db, ev, minimal=True)
            insert_event_row(db, normalized)
            ingested += 1

        if ingested:
            insert_batch_metadata_row(db, ctx)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "batch rolled back size=%d ingested_before_failure=%d", len(events), ingested
        )
        return BatchResult(ingested=0, storage_error=True)

    logger.info(
        "batch ingested=%d invalid=%d duplicate=%d",
        ingested, skipped_invalid, skipped_dup,
    )
    return BatchResult(ingested=ingested)
