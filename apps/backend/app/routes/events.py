# apps/backend/app/routes/events.py
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.dedupe import Deduplicator, get_deduplicator
from app.db import get_db
from app.request_context import RequestContext, get_request_context
from app.schemas.events import PurchaseIn
from app.services.bulk import ingest_batch
from app.services.pipeline import (
  DEDUPED,
  INVALID,
  STORAGE_ERROR,
  IngestOutcome,
  ingest_event,
  purchase_to_event,
)

router = APIRouter()

def _respond(outcome: IngestOutcome):
  if outcome.status == INVALID:
    return JSONResponse(
      status_code=400,
      content={"error": "invalid_event", "errs": outcome.errors, "warns": outcome.warnings},
    )
  if outcome.status == STORAGE_ERROR:
    return JSONResponse(status_code=500, content={"error": "db_error"})
  if outcome.status == DEDUPED:
    return {"ok": True, "deduped": True}
  return {"ok": True, "id": outcome.id, "warns": outcome.warnings}

@router.post("/events")
def post_event(
  payload: Any = Body(default=None),
  db: Session = Depends(get_db),
  ctx: RequestContext = Depends(get_request_context),
  dedupe: Deduplicator = Depends(get_deduplicator),
):
  return _respond(ingest_event(db, payload, ctx, dedupe))

@router.post("/events/bulk")
def post_events_bulk(
  payload: Any = Body(default=None),
  db: Session = Depends(get_db),
  ctx: RequestContext = Depends(get_request_context),
  dedupe: Deduplicator = Depends(get_deduplicator),
):
  result = ingest_batch(db, payload, ctx, dedupe)
  if result.storage_error:
    return JSONResponse(status_code=500, content={"error": "db_error", "ingested": 0})
  return {"ok": True, "ingested": result.ingested}

# Kept for old pixel snippets that still post purchases here.
@router.post("/purchases")
def post_purchase(
  body: PurchaseIn,
  db: Session = Depends(get_db),
  ctx: RequestContext = Depends(get_request_context),
  dedupe: Deduplicator = Depends(get_deduplicator),
):
  return _respond(ingest_event(db, purchase_to_event(body), ctx, dedupe))
