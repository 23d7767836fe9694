"""Mentor directory schemas."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MentorProfileUpdate(BaseModel):
    """Create-or-update own mentor profile."""

    bio: str | None = Field(default=None, max_length=5000)
    domains: list[str] | None = Field(default=None, max_length=20)
    experience_years: int | None = Field(default=None, ge=0, le=80)
    hourly_rate: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    company: str | None = Field(default=None, max_length=128)
    position: str | None = Field(default=None, max_length=128)
    education: str | None = Field(default=None, max_length=255)
    languages: list[str] | None = Field(default=None, max_length=20)


class MentorProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bio: str
    domains: list[str]
    experience_years: int
    hourly_rate: Decimal
    company: str | None
    position: str | None
    education: str | None
    languages: list[str]


class MentorRead(BaseModel):
    """Mentor card; profile is absent until the mentor fills it in."""

    id: UUID
    name: str
    avatar_url: str | None
    profile: MentorProfileRead | None
    open_slots: int
