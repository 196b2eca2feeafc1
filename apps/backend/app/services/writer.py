from __future__ import annotations

import logging

from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.event import BATCH_EVENT_REF, PixelEvent, PixelMetadata
from app.request_context import RequestContext
from app.services.normalize import NormalizedEvent

logger = logging.getLogger("pixel.writer")


class StorageError(Exception):
    """A write was rolled back; nothing from the unit of work is stored."""


def insert_event_row(db: Session, event: NormalizedEvent) -> int:
    result = db.execute(insert(PixelEvent).values(**event.to_row()).returning(PixelEvent.id))
    return result.scalar_one()


def insert_metadata_row(db: Session, pixel_event_id: int, ctx: RequestContext) -> None:
    db.execute(
        insert(PixelMetadata).values(
            pixel_event_id=pixel_event_id,
            ip_address=ctx.ip,
            headers=ctx.headers_json(),
            geo_location=None,
            user_agent=ctx.user_agent,
            request_id=ctx.request_id,
        )
    )


def insert_batch_metadata_row(db: Session, ctx: RequestContext) -> None:
    insert_metadata_row(db, BATCH_EVENT_REF, ctx)


def write_event(db: Session, event: NormalizedEvent, ctx: RequestContext) -> int:
    """Store the event row plus its metadata row as one unit and commit.

    Anything already executed on ``db`` (the identity upserts) commits or
    rolls back together with it. Returns the new pixel_events.id.
    """
    try:
        event_db_id = insert_event_row(db, event)
        insert_metadata_row(db, event_db_id, ctx)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(
            "event write rolled back event_name=%s event_id=%s",
            event.event_name, event.event_id,
        )
        raise StorageError(str(e)) from e
    return event_db_id
