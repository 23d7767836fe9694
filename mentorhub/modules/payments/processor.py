"""Payment processor boundary."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Protocol
from uuid import uuid4

from mentorhub.core.config import get_settings
from mentorhub.shared.exceptions import PaymentException
from mentorhub.shared.utils import utc_now

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = frozenset({"card", "paypal", "bank_transfer"})


class PaymentProcessor(Protocol):
    async def charge(self, amount: Decimal, method: str, *, currency: str) -> str:
        """Collect the amount and return the processor's transaction reference."""

    async def refund(self, transaction_ref: str, amount: Decimal, *, currency: str) -> str:
        """Return the amount of an earlier charge; returns the refund reference."""


class SimulatedPaymentProcessor:
    """In-process processor issuing ``txn_<epoch ms>`` references."""

    async def charge(self, amount: Decimal, method: str, *, currency: str) -> str:
        if method not in SUPPORTED_METHODS:
            raise PaymentException(f"Payment method '{method}' is not supported")
        if amount <= 0:
            raise PaymentException("Charge amount must be positive")
        reference = f"txn_{int(utc_now().timestamp() * 1000)}_{uuid4().hex[:8]}"
        logger.info("Simulated charge %s %s via %s -> %s", amount, currency, method, reference)
        return reference

    async def refund(self, transaction_ref: str, amount: Decimal, *, currency: str) -> str:
        if not transaction_ref.startswith("txn_"):
            raise PaymentException(f"Unknown transaction {transaction_ref}")
        reference = f"rfd_{transaction_ref.removeprefix('txn_')}"
        logger.info("Simulated refund %s %s for %s", amount, currency, transaction_ref)
        return reference


def get_payment_processor() -> PaymentProcessor:
    """Return the processor selected by PAYMENT_PROVIDER."""
    provider = get_settings().payment_provider
    if provider == "simulated":
        return SimulatedPaymentProcessor()
    raise ValueError(f"Unsupported payment provider: {provider}")
