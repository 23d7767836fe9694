"""Mentor profile ORM models."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mentorhub.core.database import Base, BaseModelMixin


class MentorProfile(BaseModelMixin, Base):
    """Optional public profile of a mentor account."""

    __tablename__ = "mentor_profiles"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    bio: Mapped[str] = mapped_column(Text, default="", nullable=False)
    domains: Mapped[list[str]] = mapped_column(ARRAY(String(64)), default=list, nullable=False)
    experience_years: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    company: Mapped[str | None] = mapped_column(String(128), nullable=True)
    position: Mapped[str | None] = mapped_column(String(128), nullable=True)
    education: Mapped[str | None] = mapped_column(String(255), nullable=True)
    languages: Mapped[list[str]] = mapped_column(ARRAY(String(32)), default=list, nullable=False)

    user = relationship("User", back_populates="mentor_profile")
