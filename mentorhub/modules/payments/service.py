"""Payment gate: charge and refund sessions through the processor."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from decimal import Decimal
from typing import TypeVar
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.config import get_settings
from mentorhub.core.database import get_db_session
from mentorhub.core.enums import SessionPaymentStatusEnum, SessionStatusEnum
from mentorhub.modules.identity.models import User
from mentorhub.modules.payments.models import Payment
from mentorhub.modules.payments.processor import PaymentProcessor, get_payment_processor
from mentorhub.modules.payments.repository import PaymentsRepository
from mentorhub.modules.sessions.models import MentoringSession
from mentorhub.modules.sessions.repository import SessionsRepository
from mentorhub.shared.exceptions import (
    InvalidStateException,
    NotFoundException,
    PaymentException,
    UnauthorizedException,
    ValidationException,
)
from mentorhub.shared.utils import utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

PAYABLE_SESSION_STATUSES = frozenset({SessionStatusEnum.REQUESTED, SessionStatusEnum.CONFIRMED})


class PaymentGate:
    """Owns the payment status of sessions."""

    def __init__(
        self,
        sessions_repository: SessionsRepository,
        payments_repository: PaymentsRepository,
        processor: PaymentProcessor,
        *,
        currency: str = "USD",
        timeout_seconds: float = 10.0,
    ) -> None:
        self.sessions_repository = sessions_repository
        self.payments_repository = payments_repository
        self.processor = processor
        self.currency = currency
        self.timeout_seconds = timeout_seconds

    async def mark_pending(self, session: MentoringSession) -> MentoringSession:
        """Make sure a freshly created session awaits payment."""
        if session.payment_status == SessionPaymentStatusEnum.PENDING:
            return session
        return await self.sessions_repository.update_details(
            session,
            payment_status=SessionPaymentStatusEnum.PENDING,
        )

    async def complete(
        self,
        session_id: UUID,
        amount: Decimal,
        method: str,
        actor: User,
    ) -> MentoringSession:
        session = await self._get_session(session_id)
        if actor.id != session.mentee_id:
            raise UnauthorizedException("Only the mentee of this session can pay for it")
        if amount <= 0:
            raise ValidationException("Payment amount must be positive")
        if session.status not in PAYABLE_SESSION_STATUSES:
            raise InvalidStateException(f"Session in status {session.status} cannot be paid")
        if session.payment_status != SessionPaymentStatusEnum.PENDING:
            raise InvalidStateException(f"Session payment is already {session.payment_status}")

        transaction_ref = await self._call_processor(
            self.processor.charge(amount, method, currency=self.currency),
        )
        updated = await self.sessions_repository.set_payment_status(
            session.id,
            SessionPaymentStatusEnum.PENDING,
            SessionPaymentStatusEnum.COMPLETED,
            payment_ref=transaction_ref,
        )
        if updated is None:
            # a concurrent payment won; hand the duplicate charge back
            try:
                await self._call_processor(
                    self.processor.refund(transaction_ref, amount, currency=self.currency),
                )
            except PaymentException:
                logger.error(
                    "Duplicate charge %s for session %s could not be refunded; reconcile manually",
                    transaction_ref,
                    session.id,
                )
            raise InvalidStateException(f"Session {session.id} was paid concurrently")

        await self.payments_repository.create_payment(
            session_id=session.id,
            payer_id=actor.id,
            amount=amount,
            currency=self.currency,
            method=method,
            transaction_ref=transaction_ref,
            paid_at=utc_now(),
        )
        logger.info("Session %s paid, transaction %s", session.id, transaction_ref)
        return updated

    async def refund(self, session: MentoringSession) -> MentoringSession:
        if session.payment_status != SessionPaymentStatusEnum.COMPLETED:
            raise InvalidStateException(f"Session payment is {session.payment_status}, nothing to refund")

        payment = await self.payments_repository.get_latest_for_session(session.id)
        if payment is None:
            raise InvalidStateException(f"No payment recorded for session {session.id}")

        refund_ref = await self._call_processor(
            self.processor.refund(payment.transaction_ref, payment.amount, currency=payment.currency),
        )
        updated = await self.sessions_repository.set_payment_status(
            session.id,
            SessionPaymentStatusEnum.COMPLETED,
            SessionPaymentStatusEnum.REFUNDED,
        )
        if updated is None:
            raise InvalidStateException(f"Session {session.id} was refunded concurrently")

        await self.payments_repository.mark_refunded(payment, refund_ref=refund_ref, refunded_at=utc_now())
        logger.info("Session %s refunded, reference %s", session.id, refund_ref)
        return updated

    async def get_payment(self, session_id: UUID, actor: User) -> Payment:
        session = await self._get_session(session_id)
        if actor.id not in (session.mentor_id, session.mentee_id):
            raise UnauthorizedException("Only session participants can view its payment")
        payment = await self.payments_repository.get_latest_for_session(session.id)
        if payment is None:
            raise NotFoundException("Payment not found")
        return payment

    async def _get_session(self, session_id: UUID) -> MentoringSession:
        session = await self.sessions_repository.get_session_by_id(session_id)
        if session is None:
            raise NotFoundException("Session not found")
        return session

    async def _call_processor(self, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except TimeoutError as exc:
            raise PaymentException("Payment processor did not answer in time") from exc


async def get_payment_gate(
    session: AsyncSession = Depends(get_db_session),
    processor: PaymentProcessor = Depends(get_payment_processor),
) -> PaymentGate:
    """FastAPI dependency for the payment gate."""
    settings = get_settings()
    return PaymentGate(
        sessions_repository=SessionsRepository(session),
        payments_repository=PaymentsRepository(session),
        processor=processor,
        currency=settings.payment_currency,
        timeout_seconds=settings.external_call_timeout_seconds,
    )
