"""Availability schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class SlotCreate(BaseModel):
    """Publish availability slot request."""

    start_at: datetime
    end_at: datetime


class SlotRead(BaseModel):
    """Availability slot response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    mentor_id: UUID
    start_at: datetime
    end_at: datetime
    is_booked: bool
    created_at: datetime
