"""Payment repository layer."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.enums import PaymentStatusEnum
from mentorhub.modules.payments.models import Payment


class PaymentsRepository:
    """DB access for payment records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_payment(
        self,
        session_id: UUID,
        payer_id: UUID,
        amount: Decimal,
        currency: str,
        method: str,
        transaction_ref: str,
        paid_at: datetime,
    ) -> Payment:
        payment = Payment(
            session_id=session_id,
            payer_id=payer_id,
            amount=amount,
            currency=currency.upper(),
            method=method,
            status=PaymentStatusEnum.COMPLETED,
            transaction_ref=transaction_ref,
            paid_at=paid_at,
        )
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def get_latest_for_session(self, session_id: UUID) -> Payment | None:
        stmt = (
            select(Payment)
            .where(Payment.session_id == session_id)
            .order_by(Payment.paid_at.desc())
            .limit(1)
        )
        return await self.session.scalar(stmt)

    async def mark_refunded(self, payment: Payment, refund_ref: str, refunded_at: datetime) -> Payment:
        payment.status = PaymentStatusEnum.REFUNDED
        payment.refund_ref = refund_ref
        payment.refunded_at = refunded_at
        await self.session.flush()
        return payment
