"""Live-session access rule."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from mentorhub.core.enums import SessionPaymentStatusEnum, SessionStatusEnum
from mentorhub.shared.utils import ensure_utc


class GatedSession(Protocol):
    status: SessionStatusEnum
    payment_status: SessionPaymentStatusEnum
    start_at: datetime
    end_at: datetime


def can_join_live_session(session: GatedSession, now: datetime) -> bool:
    """Confirmed, paid, and ``now`` inside [start_at, end_at]."""
    if session.status != SessionStatusEnum.CONFIRMED:
        return False
    if session.payment_status != SessionPaymentStatusEnum.COMPLETED:
        return False
    return ensure_utc(session.start_at) <= ensure_utc(now) <= ensure_utc(session.end_at)
