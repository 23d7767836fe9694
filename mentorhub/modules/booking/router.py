"""Booking API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from mentorhub.core.enums import RoleEnum
from mentorhub.modules.booking.service import BookingService, get_booking_service
from mentorhub.modules.identity.models import User
from mentorhub.modules.identity.service import get_current_user, require_roles
from mentorhub.modules.payments.schemas import PaymentCreate
from mentorhub.modules.sessions.schemas import (
    FollowUpCreate,
    SessionCancel,
    SessionDecision,
    SessionNotesUpdate,
    SessionRead,
    SessionRequestCreate,
    SessionTranscriptUpdate,
)

router = APIRouter(prefix="/booking", tags=["booking"])


@router.post("/sessions", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
async def request_session(
    payload: SessionRequestCreate,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(require_roles(RoleEnum.MENTEE)),
) -> SessionRead:
    """Reserve a slot and send the request to its mentor."""
    session = await service.request_booking(payload.mentor_id, current_user.id, payload.slot_id, current_user)
    return SessionRead.model_validate(session)


@router.post("/sessions/{session_id}/respond", response_model=SessionRead)
async def respond_to_request(
    session_id: UUID,
    payload: SessionDecision,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(require_roles(RoleEnum.MENTOR)),
) -> SessionRead:
    """Accept or decline a pending request."""
    session = await service.respond_to_request(session_id, current_user.id, payload.decision, current_user)
    return SessionRead.model_validate(session)


@router.post("/sessions/{session_id}/cancel", response_model=SessionRead)
async def cancel_session(
    session_id: UUID,
    payload: SessionCancel,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_user),
) -> SessionRead:
    """Cancel a confirmed session; paid sessions are refunded."""
    session = await service.cancel_session(session_id, current_user, payload.reason)
    return SessionRead.model_validate(session)


@router.post("/sessions/{session_id}/complete", response_model=SessionRead)
async def complete_session(
    session_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(require_roles(RoleEnum.MENTOR)),
) -> SessionRead:
    session = await service.complete_session(session_id, current_user)
    return SessionRead.model_validate(session)


@router.put("/sessions/{session_id}/notes", response_model=SessionRead)
async def update_notes(
    session_id: UUID,
    payload: SessionNotesUpdate,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_user),
) -> SessionRead:
    session = await service.update_notes(session_id, payload.notes, current_user)
    return SessionRead.model_validate(session)


@router.put("/sessions/{session_id}/transcript", response_model=SessionRead)
async def record_transcript(
    session_id: UUID,
    payload: SessionTranscriptUpdate,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_user),
) -> SessionRead:
    session = await service.record_transcript(session_id, payload.transcript, current_user)
    return SessionRead.model_validate(session)


@router.post("/sessions/{session_id}/follow-up", status_code=status.HTTP_204_NO_CONTENT)
async def send_follow_up(
    session_id: UUID,
    payload: FollowUpCreate,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(require_roles(RoleEnum.MENTEE)),
) -> None:
    """Message the mentor after a completed session."""
    await service.send_follow_up(session_id, payload.message, current_user)


@router.post("/sessions/{session_id}/payment", response_model=SessionRead)
async def pay_for_session(
    session_id: UUID,
    payload: PaymentCreate,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(require_roles(RoleEnum.MENTEE)),
) -> SessionRead:
    session = await service.pay_for_session(session_id, payload.amount, payload.method, current_user)
    return SessionRead.model_validate(session)


@router.post("/sessions/{session_id}/refund", response_model=SessionRead)
async def refund_session(
    session_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(require_roles(RoleEnum.MENTOR)),
) -> SessionRead:
    """Retry a refund that failed during cancellation."""
    session = await service.refund_session(session_id, current_user)
    return SessionRead.model_validate(session)
