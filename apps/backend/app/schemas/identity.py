# apps/backend/app/schemas/identity.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional
from datetime import datetime

class UserIn(BaseModel):
  model_config = ConfigDict(coerce_numbers_to_str=True)

  client_id: str = Field(..., min_length=1)
  traits: Optional[Dict[str, Any]] = None
  last_seen: Optional[datetime] = None

  user_id: Optional[str] = None
  email_sha256: Optional[str] = None
  phone_sha256: Optional[str] = None

class SessionIn(BaseModel):
  model_config = ConfigDict(coerce_numbers_to_str=True)

  session_id: str = Field(..., min_length=1)
  client_id: Optional[str] = None
  started_at: Optional[datetime] = None

  first_page: Optional[str] = None
  last_page: Optional[str] = None

class UserOut(BaseModel):
  client_id: str
  traits: Optional[Dict[str, Any]] = None
  last_seen: Optional[datetime] = None
  user_id: Optional[str] = None
  email_sha256: Optional[str] = None
  phone_sha256: Optional[str] = None

class SessionOut(BaseModel):
  session_id: str
  client_id: Optional[str] = None
  started_at: Optional[datetime] = None
  first_page: Optional[str] = None
  last_page: Optional[str] = None
