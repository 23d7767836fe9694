"""Video call schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from mentorhub.core.enums import VideoCallStatusEnum


class VideoCallRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_id: UUID
    room_ref: str
    status: VideoCallStatusEnum
    started_at: datetime | None
    ended_at: datetime | None


class JoinCallRead(BaseModel):
    """Everything a client needs to enter the room."""

    call: VideoCallRead
    join_url: str
    participant_token: str
