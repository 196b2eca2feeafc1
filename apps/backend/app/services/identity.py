"""Client and session upserts.

All writes are single ``INSERT ... ON CONFLICT DO UPDATE`` statements so
concurrent requests for the same client/session never race on a
read-modify-write. Merge rules:

- user_id / email_sha256 / phone_sha256 are coalesced: a write without a
  value keeps whatever is stored.
- a session's first_page is sticky, last_page follows the latest write
  that carries a page.

The event-driven upserts execute but do not commit; the caller owns the
transaction. The explicit /users and /sessions upserts commit themselves.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.models.identity import PixelSession, PixelUser
from app.schemas.events import PixelEventIn
from app.schemas.identity import SessionIn, UserIn
from app.services.normalize import parse_occurred_at


def upsert_insert(db: Session):
    """Dialect-specific insert() that supports on_conflict_do_update."""
    if db.get_bind().dialect.name == "postgresql":
        return pg_insert
    return sqlite_insert


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _identify_field(ev: PixelEventIn, name: str) -> Optional[str]:
    identify = ev.identify if isinstance(ev.identify, dict) else {}
    value = identify.get(name)
    return value or None


def upsert_client(db: Session, ev: PixelEventIn, minimal: bool = False) -> None:
    """Refresh the client row for an incoming event.

    ``minimal`` (bulk path) only touches last_seen.
    """
    if not ev.client_id:
        return

    now = _utcnow()
    insert = upsert_insert(db)

    if minimal:
        stmt = insert(PixelUser).values(client_id=ev.client_id, last_seen=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[PixelUser.client_id],
            set_={"last_seen": stmt.excluded.last_seen},
        )
        db.execute(stmt)
        return

    # only an object replaces stored traits
    traits = ev.traits if isinstance(ev.traits, dict) else None
    stmt = insert(PixelUser).values(
        client_id=ev.client_id,
        traits=traits or {},
        last_seen=now,
        user_id=_identify_field(ev, "user_id"),
        email_sha256=_identify_field(ev, "email_sha256"),
        phone_sha256=_identify_field(ev, "phone_sha256"),
    )
    set_: dict[str, Any] = {
        "last_seen": stmt.excluded.last_seen,
        "user_id": func.coalesce(stmt.excluded.user_id, PixelUser.user_id),
        "email_sha256": func.coalesce(stmt.excluded.email_sha256, PixelUser.email_sha256),
        "phone_sha256": func.coalesce(stmt.excluded.phone_sha256, PixelUser.phone_sha256),
    }
    if traits is not None:
        set_["traits"] = stmt.excluded.traits
    db.execute(stmt.on_conflict_do_update(index_elements=[PixelUser.client_id], set_=set_))


def upsert_session(db: Session, ev: PixelEventIn, minimal: bool = False) -> None:
    """Create or refresh the session an event belongs to.

    ``minimal`` (bulk path) only re-points client_id; pages are left alone.
    """
    if not ev.session_id:
        return

    insert = upsert_insert(db)
    started_at = parse_occurred_at(ev.started_at) or _utcnow()

    if minimal:
        stmt = insert(PixelSession).values(
            session_id=ev.session_id, client_id=ev.client_id, started_at=started_at
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[PixelSession.session_id],
            set_={"client_id": stmt.excluded.client_id},
        )
        db.execute(stmt)
        return

    page = ev.page_location or None
    _merge_session(db, ev.session_id, ev.client_id, started_at, page, page)


def _merge_session(
    db: Session,
    session_id: str,
    client_id: Optional[str],
    started_at: datetime,
    first_page: Optional[str],
    last_page: Optional[str],
):
    insert = upsert_insert(db)
    stmt = insert(PixelSession).values(
        session_id=session_id,
        client_id=client_id,
        started_at=started_at,
        first_page=first_page,
        last_page=last_page,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[PixelSession.session_id],
        set_={
            "client_id": stmt.excluded.client_id,
            "first_page": func.coalesce(PixelSession.first_page, stmt.excluded.first_page),
            "last_page": func.coalesce(stmt.excluded.last_page, PixelSession.last_page),
        },
    )
    return db.execute(stmt)


def upsert_user_record(db: Session, body: UserIn) -> PixelUser:
    """Explicit /users upsert: traits and last_seen are replaced wholesale."""
    insert = upsert_insert(db)
    stmt = insert(PixelUser).values(
        client_id=body.client_id,
        traits=body.traits or {},
        last_seen=body.last_seen or _utcnow(),
        user_id=body.user_id or None,
        email_sha256=body.email_sha256 or None,
        phone_sha256=body.phone_sha256 or None,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[PixelUser.client_id],
        set_={
            "traits": stmt.excluded.traits,
            "last_seen": stmt.excluded.last_seen,
            "user_id": func.coalesce(stmt.excluded.user_id, PixelUser.user_id),
            "email_sha256": func.coalesce(stmt.excluded.email_sha256, PixelUser.email_sha256),
            "phone_sha256": func.coalesce(stmt.excluded.phone_sha256, PixelUser.phone_sha256),
        },
    )
    db.execute(stmt)
    db.commit()
    return db.scalars(select(PixelUser).where(PixelUser.client_id == body.client_id)).one()


def upsert_session_record(db: Session, body: SessionIn) -> PixelSession:
    """Explicit /sessions upsert with the same sticky-page rules as events."""
    _merge_session(
        db,
        body.session_id,
        body.client_id,
        body.started_at or _utcnow(),
        body.first_page or None,
        body.last_page or None,
    )
    db.commit()
    return db.scalars(select(PixelSession).where(PixelSession.session_id == body.session_id)).one()
