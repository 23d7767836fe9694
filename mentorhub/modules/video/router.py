"""Video call API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from mentorhub.modules.identity.models import User
from mentorhub.modules.identity.service import get_current_user
from mentorhub.modules.sessions.schemas import SessionRead
from mentorhub.modules.video.schemas import JoinCallRead, VideoCallRead
from mentorhub.modules.video.service import VideoService, get_video_service

router = APIRouter(prefix="/video", tags=["video"])


@router.post("/sessions/{session_id}/join", response_model=JoinCallRead)
async def join_call(
    session_id: UUID,
    current_user: User = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
) -> JoinCallRead:
    """Enter the live room of a confirmed, paid session."""
    call, handle = await service.join(session_id, current_user)
    return JoinCallRead(
        call=VideoCallRead.model_validate(call),
        join_url=handle.join_url,
        participant_token=handle.participant_token,
    )


@router.post("/sessions/{session_id}/end", response_model=SessionRead)
async def end_call(
    session_id: UUID,
    current_user: User = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
) -> SessionRead:
    """Close the room; the session is completed."""
    session = await service.end(session_id, current_user)
    return SessionRead.model_validate(session)
