"""Presence entry model."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field


class PresenceEntry(BaseModel):
    """A live connection registered on a room channel. Never persisted."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    online_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
