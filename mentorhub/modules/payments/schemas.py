"""Payment schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from mentorhub.core.enums import PaymentStatusEnum


class PaymentCreate(BaseModel):
    """Pay for a session."""

    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    method: str = Field(min_length=2, max_length=32)


class PaymentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_id: UUID
    amount: Decimal
    currency: str
    method: str
    status: PaymentStatusEnum
    transaction_ref: str
    paid_at: datetime
    refunded_at: datetime | None
