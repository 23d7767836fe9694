"""Video call ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from mentorhub.core.database import Base, BaseModelMixin
from mentorhub.core.enums import VideoCallStatusEnum


class VideoCall(BaseModelMixin, Base):
    """Live room backing one session."""

    __tablename__ = "video_calls"

    session_id: Mapped[UUID] = mapped_column(
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    room_ref: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    status: Mapped[VideoCallStatusEnum] = mapped_column(
        SAEnum(VideoCallStatusEnum, name="video_call_status_enum", native_enum=False),
        default=VideoCallStatusEnum.PENDING,
        nullable=False,
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    recording_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
