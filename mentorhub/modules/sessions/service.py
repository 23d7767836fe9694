"""Read side of mentoring sessions."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.database import get_db_session
from mentorhub.core.enums import SessionStatusEnum
from mentorhub.modules.identity.models import User
from mentorhub.modules.payments.gate import can_join_live_session
from mentorhub.modules.sessions.models import MentoringSession
from mentorhub.modules.sessions.repository import SessionsRepository
from mentorhub.modules.sessions.schemas import SessionAccessRead
from mentorhub.shared.exceptions import NotFoundException, UnauthorizedException
from mentorhub.shared.utils import utc_now


def ensure_participant(session: MentoringSession, actor: User) -> None:
    if actor.id not in (session.mentor_id, session.mentee_id):
        raise UnauthorizedException("Only session participants can access this session")


class SessionsService:
    """Participant views of sessions."""

    def __init__(self, repository: SessionsRepository) -> None:
        self.repository = repository

    async def get_session(self, session_id: UUID, actor: User) -> MentoringSession:
        session = await self.repository.get_session_by_id(session_id)
        if session is None:
            raise NotFoundException("Session not found")
        ensure_participant(session, actor)
        return session

    async def list_my_sessions(
        self,
        actor: User,
        status: SessionStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[MentoringSession], int]:
        return await self.repository.list_sessions_for_user(actor.id, actor.role, status, limit, offset)

    async def get_access(self, session_id: UUID, actor: User) -> SessionAccessRead:
        session = await self.get_session(session_id, actor)
        now = utc_now()
        return SessionAccessRead(
            session_id=session.id,
            can_join=can_join_live_session(session, now),
            checked_at=now,
        )


async def get_sessions_service(session: AsyncSession = Depends(get_db_session)) -> SessionsService:
    """Dependency provider for sessions service."""
    return SessionsService(SessionsRepository(session))
