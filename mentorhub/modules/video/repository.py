"""Video call repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.enums import VideoCallStatusEnum
from mentorhub.modules.video.models import VideoCall


class VideoRepository:
    """DB access for video calls."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_call_by_session_id(self, session_id: UUID) -> VideoCall | None:
        return await self.session.scalar(select(VideoCall).where(VideoCall.session_id == session_id))

    async def create_call(self, session_id: UUID, room_ref: str) -> VideoCall:
        call = VideoCall(session_id=session_id, room_ref=room_ref, status=VideoCallStatusEnum.PENDING)
        self.session.add(call)
        await self.session.flush()
        return call

    async def update_call(self, call: VideoCall, **changes) -> VideoCall:
        for key, value in changes.items():
            setattr(call, key, value)
        await self.session.flush()
        return call
