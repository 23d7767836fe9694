"""Mentoring session ORM models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mentorhub.core.database import Base, BaseModelMixin
from mentorhub.core.enums import SessionPaymentStatusEnum, SessionStatusEnum

if TYPE_CHECKING:
    from mentorhub.modules.availability.models import AvailabilitySlot


class MentoringSession(BaseModelMixin, Base):
    """One mentor-mentee booking spawned from a single availability slot."""

    __tablename__ = "sessions"

    slot_id: Mapped[UUID] = mapped_column(
        ForeignKey("availability_slots.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )
    mentor_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    mentee_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    status: Mapped[SessionStatusEnum] = mapped_column(
        SAEnum(SessionStatusEnum, name="session_status_enum", native_enum=False),
        default=SessionStatusEnum.REQUESTED,
        nullable=False,
        index=True,
    )
    payment_status: Mapped[SessionPaymentStatusEnum] = mapped_column(
        SAEnum(SessionPaymentStatusEnum, name="session_payment_status_enum", native_enum=False),
        default=SessionPaymentStatusEnum.PENDING,
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    transcript: Mapped[str | None] = mapped_column(Text, nullable=True)
    video_call_ref: Mapped[str | None] = mapped_column(String(128), nullable=True)
    payment_ref: Mapped[str | None] = mapped_column(String(128), nullable=True)

    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    declined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    reminder_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    slot: Mapped["AvailabilitySlot"] = relationship(back_populates="session")
