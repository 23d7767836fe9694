"""Request and response bodies for account endpoints."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl

from mentorhub.core.enums import RoleEnum

class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=128)
    # bcrypt ignores anything past 72 bytes
    password: str = Field(min_length=8, max_length=72)
    role: RoleEnum = RoleEnum.MENTEE


class UserUpdate(BaseModel):
    """Partial update of display fields; omitted fields stay as they are."""

    name: str | None = Field(default=None, min_length=1, max_length=128)
    avatar_url: HttpUrl | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: EmailStr
    name: str
    role: RoleEnum
    avatar_url: str | None
    is_active: bool
    created_at: datetime
