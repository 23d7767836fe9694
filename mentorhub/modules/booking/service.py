"""Booking orchestrator: the only writer of cross-module session state.

Every public operation runs inside the request's unit of work. A slot is
reserved before its session exists; if the session cannot be created, the
reservation is flipped back before the error reaches the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.config import get_settings
from mentorhub.core.database import get_db_session
from mentorhub.core.enums import (
    BookingDecisionEnum,
    NotificationTypeEnum,
    RoleEnum,
    SessionPaymentStatusEnum,
    SessionStatusEnum,
)
from mentorhub.modules.availability.repository import AvailabilityRepository
from mentorhub.modules.availability.service import AvailabilityService
from mentorhub.modules.identity.models import User
from mentorhub.modules.notifications.dispatcher import NotificationDispatcher
from mentorhub.modules.notifications.repository import NotificationsRepository
from mentorhub.modules.payments.processor import PaymentProcessor, get_payment_processor
from mentorhub.modules.payments.repository import PaymentsRepository
from mentorhub.modules.payments.service import PaymentGate
from mentorhub.modules.sessions.models import MentoringSession
from mentorhub.modules.sessions.repository import SessionsRepository
from mentorhub.modules.sessions.service import ensure_participant
from mentorhub.modules.sessions.state_machine import SessionStateMachine
from mentorhub.shared.exceptions import (
    ConflictException,
    InvalidStateException,
    NotFoundException,
    PaymentException,
    SessionCreationFailedException,
    UnauthorizedException,
    ValidationException,
)
from mentorhub.shared.utils import utc_now

logger = logging.getLogger(__name__)
settings = get_settings()

TRANSCRIPT_STATUSES = frozenset({SessionStatusEnum.CONFIRMED, SessionStatusEnum.COMPLETED})


class BookingService:
    """Coordinates slots, sessions, payments and notifications."""

    def __init__(
        self,
        availability_service: AvailabilityService,
        sessions_repository: SessionsRepository,
        state_machine: SessionStateMachine,
        payment_gate: PaymentGate,
        dispatcher: NotificationDispatcher,
        *,
        reminder_lead: timedelta | None = None,
    ) -> None:
        self.availability_service = availability_service
        self.sessions_repository = sessions_repository
        self.state_machine = state_machine
        self.payment_gate = payment_gate
        self.dispatcher = dispatcher
        self.reminder_lead = reminder_lead or timedelta(minutes=settings.reminder_lead_minutes)

    async def _get_session(self, session_id: UUID) -> MentoringSession:
        session = await self.sessions_repository.get_session_by_id(session_id)
        if session is None:
            raise NotFoundException("Session not found")
        return session

    async def request_booking(
        self,
        mentor_id: UUID,
        mentee_id: UUID,
        slot_id: UUID,
        actor: User,
    ) -> MentoringSession:
        """Reserve the slot and open a session request for the mentor."""
        if actor.role != RoleEnum.MENTEE or actor.id != mentee_id:
            raise UnauthorizedException("Only mentees can request sessions for themselves")
        if mentor_id == mentee_id:
            raise ValidationException("You cannot book a session with yourself")

        slot = await self.availability_service.get_slot(slot_id)
        if slot.mentor_id != mentor_id:
            raise ValidationException("Slot does not belong to this mentor")
        self.availability_service.ensure_bookable(slot)

        slot = await self.availability_service.reserve(slot_id)
        try:
            session = await self.sessions_repository.create_session(
                slot_id=slot.id,
                mentor_id=mentor_id,
                mentee_id=mentee_id,
                start_at=slot.start_at,
                end_at=slot.end_at,
            )
        except SQLAlchemyError as exc:
            logger.exception("Session creation failed for slot %s, releasing reservation", slot_id)
            await self.availability_service.unreserve(slot_id)
            raise SessionCreationFailedException("Session could not be created for this slot") from exc

        session = await self.payment_gate.mark_pending(session)
        logger.info("Mentee %s requested session %s on slot %s", mentee_id, session.id, slot_id)
        await self.state_machine.announce_request(session)
        return session

    async def respond_to_request(
        self,
        session_id: UUID,
        mentor_id: UUID,
        decision: BookingDecisionEnum,
        actor: User,
    ) -> MentoringSession:
        session = await self._get_session(session_id)
        if actor.id != mentor_id or session.mentor_id != mentor_id:
            raise UnauthorizedException("Only the session mentor can respond to this request")
        if decision == BookingDecisionEnum.ACCEPT:
            return await self.state_machine.accept(session)
        return await self.state_machine.decline(session)

    async def cancel_session(self, session_id: UUID, actor: User, reason: str | None = None) -> MentoringSession:
        """Cancel a confirmed session and refund it when it was paid."""
        session = await self._get_session(session_id)
        ensure_participant(session, actor)
        session = await self.state_machine.cancel(session, actor.id, reason)

        if session.payment_status == SessionPaymentStatusEnum.COMPLETED:
            try:
                session = await self.payment_gate.refund(session)
            except PaymentException as exc:
                logger.error("Refund for cancelled session %s failed: %s", session.id, exc.message)
        return session

    async def complete_session(self, session_id: UUID, actor: User | None = None) -> MentoringSession:
        """Close a held session; ``actor`` is None on the end-of-call path."""
        session = await self._get_session(session_id)
        if actor is not None and actor.id != session.mentor_id:
            raise UnauthorizedException("Only the session mentor can complete it")
        return await self.state_machine.complete(session)

    async def update_notes(self, session_id: UUID, notes: str, actor: User) -> MentoringSession:
        session = await self._get_session(session_id)
        ensure_participant(session, actor)
        return await self.sessions_repository.update_details(session, notes=notes)

    async def record_transcript(
        self,
        session_id: UUID,
        transcript: str,
        actor: User | None = None,
    ) -> MentoringSession:
        session = await self._get_session(session_id)
        if actor is not None:
            ensure_participant(session, actor)
        if session.status not in TRANSCRIPT_STATUSES:
            raise ConflictException(f"Transcript cannot be recorded for a {session.status} session")
        return await self.sessions_repository.update_details(session, transcript=transcript)

    async def send_follow_up(self, session_id: UUID, message: str, actor: User) -> list[UUID]:
        session = await self._get_session(session_id)
        if actor.id != session.mentee_id:
            raise UnauthorizedException("Only the session mentee can send a follow-up")
        if session.status != SessionStatusEnum.COMPLETED:
            raise ConflictException("Follow-ups are only possible after the session is completed")
        return await self.dispatcher.notify_participants(
            NotificationTypeEnum.FOLLOW_UP,
            session,
            {"message": message},
        )

    async def pay_for_session(
        self,
        session_id: UUID,
        amount: Decimal,
        method: str,
        actor: User,
    ) -> MentoringSession:
        return await self.payment_gate.complete(session_id, amount, method, actor)

    async def refund_session(self, session_id: UUID, actor: User) -> MentoringSession:
        """Retry the refund of a cancelled session that is still paid."""
        session = await self._get_session(session_id)
        if actor.id != session.mentor_id:
            raise UnauthorizedException("Only the session mentor can issue a refund")
        if session.status != SessionStatusEnum.CANCELLED:
            raise InvalidStateException("Only cancelled sessions can be refunded")
        return await self.payment_gate.refund(session)

    async def send_due_reminders(self, now: datetime | None = None) -> int:
        """Remind both parties of confirmed sessions starting soon; each session once."""
        now = now or utc_now()
        due_sessions = await self.sessions_repository.find_due_for_reminder(now, now + self.reminder_lead)
        sent = 0
        for session in due_sessions:
            if not await self.sessions_repository.mark_reminder_sent(session.id, now):
                continue
            await self.state_machine.announce_reminder(session)
            sent += 1
        if sent:
            logger.info("Sent reminders for %s sessions", sent)
        return sent


def build_booking_service(
    session: AsyncSession,
    processor: PaymentProcessor,
) -> BookingService:
    """Wire the orchestrator over one database session."""
    sessions_repository = SessionsRepository(session)
    dispatcher = NotificationDispatcher(NotificationsRepository(session))
    return BookingService(
        availability_service=AvailabilityService(AvailabilityRepository(session)),
        sessions_repository=sessions_repository,
        state_machine=SessionStateMachine(sessions_repository, dispatcher),
        payment_gate=PaymentGate(
            sessions_repository=sessions_repository,
            payments_repository=PaymentsRepository(session),
            processor=processor,
            currency=settings.payment_currency,
            timeout_seconds=settings.external_call_timeout_seconds,
        ),
        dispatcher=dispatcher,
    )


async def get_booking_service(
    session: AsyncSession = Depends(get_db_session),
    processor: PaymentProcessor = Depends(get_payment_processor),
) -> BookingService:
    """Dependency provider for booking service."""
    return build_booking_service(session, processor)
