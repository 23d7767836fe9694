"""Session read API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from mentorhub.core.enums import SessionStatusEnum
from mentorhub.modules.identity.models import User
from mentorhub.modules.identity.service import get_current_user
from mentorhub.modules.sessions.schemas import SessionAccessRead, SessionRead
from mentorhub.modules.sessions.service import SessionsService, get_sessions_service
from mentorhub.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("/my", response_model=Page[SessionRead])
async def list_my_sessions(
    status: SessionStatusEnum | None = Query(default=None),
    pagination=Depends(get_pagination_params),
    current_user: User = Depends(get_current_user),
    service: SessionsService = Depends(get_sessions_service),
) -> Page[SessionRead]:
    """Sessions where the current user is mentor or mentee."""
    items, total = await service.list_my_sessions(current_user, status, pagination.limit, pagination.offset)
    serialized = [SessionRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/{session_id}", response_model=SessionRead)
async def get_session(
    session_id: UUID,
    current_user: User = Depends(get_current_user),
    service: SessionsService = Depends(get_sessions_service),
) -> SessionRead:
    session = await service.get_session(session_id, current_user)
    return SessionRead.model_validate(session)


@router.get("/{session_id}/access", response_model=SessionAccessRead)
async def get_session_access(
    session_id: UUID,
    current_user: User = Depends(get_current_user),
    service: SessionsService = Depends(get_sessions_service),
) -> SessionAccessRead:
    """Whether the live room can be entered right now."""
    return await service.get_access(session_id, current_user)
