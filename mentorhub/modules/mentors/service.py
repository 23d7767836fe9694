"""Mentor directory business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.database import get_db_session
from mentorhub.core.enums import RoleEnum
from mentorhub.modules.identity.models import User
from mentorhub.modules.mentors.models import MentorProfile
from mentorhub.modules.mentors.repository import MentorsRepository
from mentorhub.modules.mentors.schemas import MentorProfileRead, MentorProfileUpdate, MentorRead
from mentorhub.shared.exceptions import NotFoundException, UnauthorizedException


def build_mentor_read(user: User, profile: MentorProfile | None, open_slots: int) -> MentorRead:
    return MentorRead(
        id=user.id,
        name=user.name,
        avatar_url=user.avatar_url,
        profile=MentorProfileRead.model_validate(profile) if profile is not None else None,
        open_slots=open_slots,
    )


class MentorsService:
    """Mentor directory and profile management."""

    def __init__(self, repository: MentorsRepository) -> None:
        self.repository = repository

    async def list_mentors(self, domain: str | None, limit: int, offset: int) -> tuple[list[MentorRead], int]:
        """List active mentors with their count of open slots."""
        rows, total = await self.repository.list_mentors(domain=domain, limit=limit, offset=offset)
        return [build_mentor_read(user, profile, count) for user, profile, count in rows], total

    async def get_mentor(self, mentor_id: UUID) -> MentorRead:
        mentor = await self.repository.get_mentor(mentor_id)
        if mentor is None:
            raise NotFoundException("Mentor not found")
        profile = await self.repository.get_profile_by_user_id(mentor_id)
        open_slots = await self.repository.count_open_slots(mentor_id)
        return build_mentor_read(mentor, profile, open_slots)

    async def upsert_profile(self, payload: MentorProfileUpdate, actor: User) -> MentorProfile:
        """Create the actor's mentor profile or update the provided fields."""
        if actor.role != RoleEnum.MENTOR:
            raise UnauthorizedException("Only mentors can have a mentor profile")

        changes = payload.model_dump(exclude_none=True)
        profile = await self.repository.get_profile_by_user_id(actor.id)
        if profile is None:
            return await self.repository.create_profile(actor.id, **changes)
        return await self.repository.update_profile(profile, **changes)


async def get_mentors_service(session: AsyncSession = Depends(get_db_session)) -> MentorsService:
    """Dependency provider for mentors service."""
    return MentorsService(MentorsRepository(session))
