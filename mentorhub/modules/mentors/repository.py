"""Mentor directory repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.enums import RoleEnum
from mentorhub.modules.availability.models import AvailabilitySlot
from mentorhub.modules.identity.models import User
from mentorhub.modules.mentors.models import MentorProfile


class MentorsRepository:
    """DB operations for mentor directory and profiles."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_mentor(self, mentor_id: UUID) -> User | None:
        stmt = select(User).where(User.id == mentor_id, User.role == RoleEnum.MENTOR)
        return await self.session.scalar(stmt)

    async def get_profile_by_user_id(self, user_id: UUID) -> MentorProfile | None:
        stmt = select(MentorProfile).where(MentorProfile.user_id == user_id)
        return await self.session.scalar(stmt)

    async def create_profile(self, user_id: UUID, **fields) -> MentorProfile:
        profile = MentorProfile(user_id=user_id, **fields)
        self.session.add(profile)
        await self.session.flush()
        return profile

    async def update_profile(self, profile: MentorProfile, **changes) -> MentorProfile:
        for key, value in changes.items():
            if value is not None:
                setattr(profile, key, value)
        await self.session.flush()
        return profile

    async def count_open_slots(self, mentor_id: UUID) -> int:
        stmt = select(func.count()).where(
            AvailabilitySlot.mentor_id == mentor_id,
            AvailabilitySlot.is_booked.is_(False),
            AvailabilitySlot.start_at > func.now(),
        )
        return int((await self.session.scalar(stmt)) or 0)

    async def list_mentors(
        self,
        domain: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[tuple[User, MentorProfile | None, int]], int]:
        open_slots = (
            select(func.count(AvailabilitySlot.id))
            .where(
                AvailabilitySlot.mentor_id == User.id,
                AvailabilitySlot.is_booked.is_(False),
                AvailabilitySlot.start_at > func.now(),
            )
            .correlate(User)
            .scalar_subquery()
        )
        base_stmt: Select = (
            select(User, MentorProfile, open_slots.label("open_slots"))
            .outerjoin(MentorProfile, MentorProfile.user_id == User.id)
            .where(User.role == RoleEnum.MENTOR, User.is_active.is_(True))
        )
        if domain:
            base_stmt = base_stmt.where(MentorProfile.domains.any(domain))

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(User.name.asc()).limit(limit).offset(offset)
        rows = (await self.session.execute(stmt)).all()
        return [(user, profile, int(count)) for user, profile, count in rows], total
