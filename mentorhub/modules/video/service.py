"""Live video rooms for confirmed, paid sessions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.config import get_settings
from mentorhub.core.database import get_db_session
from mentorhub.core.enums import SessionStatusEnum, VideoCallStatusEnum
from mentorhub.modules.booking.service import BookingService, build_booking_service
from mentorhub.modules.identity.models import User
from mentorhub.modules.payments.gate import can_join_live_session
from mentorhub.modules.payments.processor import PaymentProcessor, get_payment_processor
from mentorhub.modules.sessions.models import MentoringSession
from mentorhub.modules.sessions.service import ensure_participant
from mentorhub.modules.video.models import VideoCall
from mentorhub.modules.video.provider import CallHandle, VideoProvider, get_video_provider
from mentorhub.modules.video.repository import VideoRepository
from mentorhub.shared.exceptions import (
    ConflictException,
    IllegalTransitionException,
    NotFoundException,
    UnauthorizedException,
    VideoProviderException,
)
from mentorhub.shared.utils import utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")


def room_ref_for(session: MentoringSession) -> str:
    return f"session-{session.id.hex}"


class VideoService:
    """Join and end the live room of a session."""

    def __init__(
        self,
        repository: VideoRepository,
        booking_service: BookingService,
        provider: VideoProvider,
        *,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.repository = repository
        self.booking_service = booking_service
        self.provider = provider
        self.timeout_seconds = timeout_seconds

    async def join(self, session_id: UUID, actor: User) -> tuple[VideoCall, CallHandle]:
        session = await self._get_session(session_id)
        ensure_participant(session, actor)
        if not can_join_live_session(session, utc_now()):
            raise UnauthorizedException("Session is not open for joining: it must be confirmed, paid and in progress")

        call = await self.repository.get_call_by_session_id(session.id)
        if call is None:
            call = await self.repository.create_call(session.id, room_ref_for(session))
        if call.status == VideoCallStatusEnum.ENDED:
            raise ConflictException("The call for this session has already ended")

        handle = await self._call_provider(self.provider.create_or_join_call(call.room_ref, actor.id))
        if call.status == VideoCallStatusEnum.PENDING:
            call = await self.repository.update_call(
                call,
                status=VideoCallStatusEnum.STARTED,
                started_at=utc_now(),
            )
        if session.video_call_ref != call.room_ref:
            await self.booking_service.sessions_repository.update_details(session, video_call_ref=call.room_ref)
        logger.info("User %s joined room %s", actor.id, call.room_ref)
        return call, handle

    async def end(self, session_id: UUID, actor: User) -> MentoringSession:
        """Close the room and complete the session."""
        session = await self._get_session(session_id)
        ensure_participant(session, actor)

        call = await self.repository.get_call_by_session_id(session.id)
        if call is None or call.status != VideoCallStatusEnum.STARTED:
            raise ConflictException("No running call for this session")
        if session.status != SessionStatusEnum.CONFIRMED:
            raise IllegalTransitionException(f"Session is {session.status}; only confirmed sessions can be completed")

        await self._call_provider(self.provider.end_call(call.room_ref))
        await self.repository.update_call(call, status=VideoCallStatusEnum.ENDED, ended_at=utc_now())
        logger.info("Room %s ended by %s", call.room_ref, actor.id)
        return await self.booking_service.complete_session(session.id)

    async def _get_session(self, session_id: UUID) -> MentoringSession:
        session = await self.booking_service.sessions_repository.get_session_by_id(session_id)
        if session is None:
            raise NotFoundException("Session not found")
        return session

    async def _call_provider(self, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except TimeoutError as exc:
            raise VideoProviderException("Video provider did not answer in time") from exc


async def get_video_service(
    session: AsyncSession = Depends(get_db_session),
    processor: PaymentProcessor = Depends(get_payment_processor),
    provider: VideoProvider = Depends(get_video_provider),
) -> VideoService:
    """Dependency provider for video service."""
    return VideoService(
        repository=VideoRepository(session),
        booking_service=build_booking_service(session, processor),
        provider=provider,
        timeout_seconds=get_settings().external_call_timeout_seconds,
    )
