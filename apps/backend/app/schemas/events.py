# apps/backend/app/schemas/events.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional

class PixelEventIn(BaseModel):
  """One record as sent by the tracking pixel.

  Everything is optional here; required fields are checked by the
  validator so the caller gets error codes instead of a 422. Unknown
  fields are kept (extra="allow") and end up in raw_payload anyway.
  """
  model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

  event_id: Optional[str] = None
  event_name: Optional[str] = None
  client_id: Optional[str] = None
  session_id: Optional[str] = None

  # occurred_at: ISO string or epoch ms; timestamp: legacy epoch ms
  occurred_at: Optional[Any] = None
  timestamp: Optional[Any] = None
  started_at: Optional[Any] = None

  page_location: Optional[str] = None
  page_referrer: Optional[str] = None
  page_title: Optional[str] = None
  language: Optional[str] = None
  user_agent: Optional[str] = None
  message: Optional[str] = None

  timezone_offset: Optional[Any] = None
  bot_score: Optional[Any] = None

  screen: Optional[Any] = None
  viewport: Optional[Any] = None
  network: Optional[Any] = None
  performance: Optional[Any] = None
  campaign: Optional[Any] = None
  attribution: Optional[Any] = None
  referrer_chain: Optional[Any] = None
  navigation: Optional[Any] = None
  click: Optional[Any] = None
  form: Optional[Any] = None
  engagement: Optional[Any] = None
  ecommerce: Optional[Any] = None
  browser_hints: Optional[Any] = None
  experiment: Optional[Any] = None
  validation_warnings: Optional[Any] = None
  validation_errors: Optional[Any] = None

  fbp: Optional[str] = None
  fbc: Optional[str] = None

  traits: Optional[Any] = None
  identify: Optional[Any] = None

  # legacy flat attribution, superseded by `campaign`
  utm_source: Optional[str] = None
  utm_medium: Optional[str] = None
  utm_campaign: Optional[str] = None
  utm_content: Optional[str] = None
  utm_term: Optional[str] = None
  gclid: Optional[str] = None
  fbclid: Optional[str] = None
  wbraid: Optional[str] = None
  gbraid: Optional[str] = None
  msclkid: Optional[str] = None
  ttclid: Optional[str] = None
  yclid: Optional[str] = None

class PurchaseIn(BaseModel):
  """Body of the legacy /purchases endpoint."""
  model_config = ConfigDict(coerce_numbers_to_str=True)

  client_id: Optional[str] = None
  session_id: Optional[str] = None
  purchase_id: Optional[str] = None
  value: Optional[Any] = None
  currency: Optional[str] = None
  items: List[Any] = Field(default_factory=list)
  timestamp: Optional[Any] = None
