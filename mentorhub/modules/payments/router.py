"""Payment API endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from mentorhub.modules.identity.models import User
from mentorhub.modules.identity.service import get_current_user
from mentorhub.modules.payments.schemas import PaymentRead
from mentorhub.modules.payments.service import PaymentGate, get_payment_gate

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/sessions/{session_id}", response_model=PaymentRead)
async def get_session_payment(
    session_id: UUID,
    current_user: User = Depends(get_current_user),
    gate: PaymentGate = Depends(get_payment_gate),
) -> PaymentRead:
    payment = await gate.get_payment(session_id, current_user)
    return PaymentRead.model_validate(payment)
