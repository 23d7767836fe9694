"""Queries over users and their refresh tokens."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.enums import RoleEnum
from mentorhub.modules.identity.models import RefreshToken, User


class IdentityRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _persist(self, entity):
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def get_user_by_email(self, email: str) -> User | None:
        """Emails are stored lower-cased, so lookups are case-insensitive."""
        return await self.session.scalar(select(User).where(User.email == email.lower()))

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        return await self.session.get(User, user_id)

    async def create_user(self, email: str, name: str, password_hash: str, role: RoleEnum) -> User:
        return await self._persist(User(email=email.lower(), name=name, password_hash=password_hash, role=role))

    async def update_user(self, user: User, **changes: Any) -> User:
        for field_name, value in changes.items():
            setattr(user, field_name, value)
        await self.session.flush()
        return user

    async def create_refresh_token(self, user_id: UUID, token_id: str, expires_at: datetime) -> RefreshToken:
        return await self._persist(RefreshToken(user_id=user_id, token_id=token_id, expires_at=expires_at))

    async def get_refresh_token_by_id(self, token_id: str) -> RefreshToken | None:
        return await self.session.scalar(select(RefreshToken).where(RefreshToken.token_id == token_id))

    async def revoke_refresh_token(self, token_id: str, revoked_at: datetime) -> bool:
        """Stamp `revoked_at` on a live token; False if missing or already revoked."""
        result = await self.session.execute(
            update(RefreshToken)
            .where(RefreshToken.token_id == token_id, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=revoked_at)
            .execution_options(synchronize_session=False),
        )
        return result.rowcount == 1
