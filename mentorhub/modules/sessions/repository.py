"""Mentoring session repository layer.

Status and payment changes go through conditional UPDATEs keyed on the
observed pre-state, so a racing writer either wins or matches zero rows.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.enums import RoleEnum, SessionPaymentStatusEnum, SessionStatusEnum
from mentorhub.modules.sessions.models import MentoringSession


class SessionsRepository:
    """DB operations for mentoring sessions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_session(
        self,
        slot_id: UUID,
        mentor_id: UUID,
        mentee_id: UUID,
        start_at: datetime,
        end_at: datetime,
    ) -> MentoringSession:
        mentoring_session = MentoringSession(
            slot_id=slot_id,
            mentor_id=mentor_id,
            mentee_id=mentee_id,
            start_at=start_at,
            end_at=end_at,
            status=SessionStatusEnum.REQUESTED,
            payment_status=SessionPaymentStatusEnum.PENDING,
        )
        async with self.session.begin_nested():
            self.session.add(mentoring_session)
        return mentoring_session

    async def get_session_by_id(self, session_id: UUID) -> MentoringSession | None:
        stmt = select(MentoringSession).where(MentoringSession.id == session_id)
        return await self.session.scalar(stmt)

    async def list_sessions_for_user(
        self,
        user_id: UUID,
        role: RoleEnum,
        status: SessionStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[MentoringSession], int]:
        owner_column = MentoringSession.mentor_id if role == RoleEnum.MENTOR else MentoringSession.mentee_id
        base_stmt: Select[tuple[MentoringSession]] = select(MentoringSession).where(owner_column == user_id)
        if status is not None:
            base_stmt = base_stmt.where(MentoringSession.status == status)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(MentoringSession.start_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return list(items), total

    async def transition_status(
        self,
        session_id: UUID,
        expected: SessionStatusEnum,
        target: SessionStatusEnum,
        **changes,
    ) -> MentoringSession | None:
        stmt = (
            update(MentoringSession)
            .where(MentoringSession.id == session_id, MentoringSession.status == expected)
            .values(status=target, **changes)
            .returning(MentoringSession)
            .execution_options(populate_existing=True)
        )
        return await self.session.scalar(stmt)

    async def set_payment_status(
        self,
        session_id: UUID,
        expected: SessionPaymentStatusEnum,
        target: SessionPaymentStatusEnum,
        **changes,
    ) -> MentoringSession | None:
        stmt = (
            update(MentoringSession)
            .where(MentoringSession.id == session_id, MentoringSession.payment_status == expected)
            .values(payment_status=target, **changes)
            .returning(MentoringSession)
            .execution_options(populate_existing=True)
        )
        return await self.session.scalar(stmt)

    async def update_details(self, mentoring_session: MentoringSession, **changes) -> MentoringSession:
        """Update free-form fields (notes, transcript, video reference)."""
        for key, value in changes.items():
            setattr(mentoring_session, key, value)
        await self.session.flush()
        return mentoring_session

    async def find_due_for_reminder(self, now: datetime, until: datetime) -> list[MentoringSession]:
        stmt = (
            select(MentoringSession)
            .where(
                MentoringSession.status == SessionStatusEnum.CONFIRMED,
                MentoringSession.reminder_sent_at.is_(None),
                MentoringSession.start_at > now,
                MentoringSession.start_at <= until,
            )
            .order_by(MentoringSession.start_at.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def mark_reminder_sent(self, session_id: UUID, sent_at: datetime) -> bool:
        stmt = (
            update(MentoringSession)
            .where(MentoringSession.id == session_id, MentoringSession.reminder_sent_at.is_(None))
            .values(reminder_sent_at=sent_at)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
