# apps/backend/app/models/event.py
from sqlalchemy import Column, BigInteger, Integer, Float, Text, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from app.db import Base

# JSONB on Postgres, plain JSON elsewhere (sqlite in tests)
JSONType = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")

# sqlite only autoincrements INTEGER PRIMARY KEY
IdType = BigInteger().with_variant(Integer(), "sqlite")

# pixel_event_id used by the single metadata row written for a whole batch
BATCH_EVENT_REF = 0

class PixelEvent(Base):
  __tablename__ = "pixel_events"

  id = Column(IdType, primary_key=True, index=True, autoincrement=True)
  event_id = Column(Text, nullable=False, index=True)
  event_name = Column(Text, nullable=False, index=True)
  client_id = Column(Text, nullable=False, index=True)
  session_id = Column(Text, nullable=True, index=True)

  # epoch ms as sent by the pixel; occurred_at is the authoritative time
  timestamp = Column(BigInteger, nullable=True)
  occurred_at = Column(DateTime(timezone=True), nullable=True, index=True)

  page_location = Column(Text, nullable=True)
  page_referrer = Column(Text, nullable=True)
  page_title = Column(Text, nullable=True)
  language = Column(Text, nullable=True)
  user_agent = Column(Text, nullable=True)

  viewport_width = Column(Float, nullable=True)
  viewport_height = Column(Float, nullable=True)
  timezone_offset = Column(Float, nullable=True)

  utm_source = Column(Text, nullable=True, index=True)
  utm_medium = Column(Text, nullable=True)
  utm_campaign = Column(Text, nullable=True)
  utm_content = Column(Text, nullable=True)
  utm_term = Column(Text, nullable=True)

  message = Column(Text, nullable=True)

  screen = Column(JSONType, nullable=True)
  viewport = Column(JSONType, nullable=True)
  network = Column(JSONType, nullable=True)
  performance = Column(JSONType, nullable=True)
  campaign = Column(JSONType, nullable=True)
  attribution = Column(JSONType, nullable=True)
  referrer_chain = Column(JSONType, nullable=True)
  navigation = Column(JSONType, nullable=True)
  click = Column(JSONType, nullable=True)
  form = Column(JSONType, nullable=True)
  engagement = Column(JSONType, nullable=True)
  ecommerce = Column(JSONType, nullable=True)
  browser_hints = Column(JSONType, nullable=True)
  experiment = Column(JSONType, nullable=True)
  validation_warnings = Column(JSONType, nullable=True)
  validation_errors = Column(JSONType, nullable=True)

  fbp = Column(Text, nullable=True)
  fbc = Column(Text, nullable=True)

  bot_score = Column(Float, nullable=False, server_default="0")

  raw_payload = Column(JSONType, nullable=False)

  created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)


class PixelMetadata(Base):
  __tablename__ = "pixel_metadata"

  id = Column(IdType, primary_key=True, index=True, autoincrement=True)

  # not a foreign key: batch rows point at BATCH_EVENT_REF
  pixel_event_id = Column(BigInteger, nullable=False, index=True)

  ip_address = Column(Text, nullable=True)
  headers = Column(Text, nullable=True)
  geo_location = Column(JSONType, nullable=True)
  user_agent = Column(Text, nullable=True)
  request_id = Column(Text, nullable=True)

  created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
