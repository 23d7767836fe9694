"""Notifications schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from mentorhub.core.enums import NotificationTypeEnum


class NotificationRead(BaseModel):
    """Notification response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    message: str
    type: NotificationTypeEnum
    read: bool
    related_session_id: UUID | None
    created_at: datetime


class UnreadCountRead(BaseModel):
    unread: int


class MarkAllReadResult(BaseModel):
    updated: int
