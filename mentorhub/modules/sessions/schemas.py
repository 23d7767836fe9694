"""Mentoring session schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from mentorhub.core.enums import BookingDecisionEnum, SessionPaymentStatusEnum, SessionStatusEnum


class SessionRequestCreate(BaseModel):
    """Mentee request for one open slot."""

    mentor_id: UUID
    slot_id: UUID


class SessionDecision(BaseModel):
    decision: BookingDecisionEnum


class SessionCancel(BaseModel):
    reason: str | None = Field(default=None, max_length=512)


class SessionNotesUpdate(BaseModel):
    notes: str = Field(max_length=20_000)


class SessionTranscriptUpdate(BaseModel):
    transcript: str = Field(min_length=1, max_length=200_000)


class FollowUpCreate(BaseModel):
    message: str = Field(min_length=1, max_length=2000)


class SessionRead(BaseModel):
    """Mentoring session response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slot_id: UUID
    mentor_id: UUID
    mentee_id: UUID
    start_at: datetime
    end_at: datetime
    status: SessionStatusEnum
    payment_status: SessionPaymentStatusEnum
    notes: str | None
    transcript: str | None
    video_call_ref: str | None
    confirmed_at: datetime | None
    declined_at: datetime | None
    cancelled_at: datetime | None
    completed_at: datetime | None
    cancellation_reason: str | None
    created_at: datetime


class SessionAccessRead(BaseModel):
    """Result of the live-session access check."""

    session_id: UUID
    can_join: bool
    checked_at: datetime
