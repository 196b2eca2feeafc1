from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base
from app.models.event import JSONType


class PixelUser(Base):
    __tablename__ = "pixel_users"

    # first-party cookie id set by the pixel
    client_id: Mapped[str] = mapped_column(Text, primary_key=True)

    traits: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    last_seen: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # resolved identity; coalesced on every write, never cleared
    user_id: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    email_sha256: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    phone_sha256: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "client_id": self.client_id,
            "traits": self.traits,
            "last_seen": self.last_seen,
            "user_id": self.user_id,
            "email_sha256": self.email_sha256,
            "phone_sha256": self.phone_sha256,
        }


class PixelSession(Base):
    __tablename__ = "pixel_sessions"

    session_id: Mapped[str] = mapped_column(Text, primary_key=True)
    client_id: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    first_page: Mapped[str | None] = mapped_column(Text, nullable=True)  # sticky
    last_page: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "client_id": self.client_id,
            "started_at": self.started_at,
            "first_page": self.first_page,
            "last_page": self.last_page,
        }
