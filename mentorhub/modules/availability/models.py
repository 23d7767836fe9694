"""Availability ORM models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mentorhub.core.database import Base, BaseModelMixin

if TYPE_CHECKING:
    from mentorhub.modules.sessions.models import MentoringSession


class AvailabilitySlot(BaseModelMixin, Base):
    """Bookable time interval published by a mentor.

    Open slots of one mentor never overlap on ``[start_at, end_at)``; the
    database backs this with a partial exclusion constraint created in the
    initial migration.
    """

    __tablename__ = "availability_slots"
    __table_args__ = (
        CheckConstraint("start_at < end_at", name="start_before_end"),
        Index("ix_availability_slots_mentor_open", "mentor_id", "start_at", postgresql_where="NOT is_booked"),
    )

    mentor_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_booked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    session: Mapped["MentoringSession | None"] = relationship("MentoringSession", back_populates="slot", uselist=False)
