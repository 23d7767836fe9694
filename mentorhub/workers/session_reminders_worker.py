"""Executable worker sending reminders for upcoming sessions."""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import timedelta

from mentorhub.core.config import get_settings
from mentorhub.core.database import SessionLocal
from mentorhub.modules.booking.service import build_booking_service
from mentorhub.modules.payments.processor import get_payment_processor

logger = logging.getLogger(__name__)


async def run_cycle() -> int:
    """Run one reminder pass in one DB transaction."""
    lead_minutes = int(os.getenv("REMINDER_WORKER_LEAD_MINUTES", str(get_settings().reminder_lead_minutes)))
    async with SessionLocal() as session:
        service = build_booking_service(session, get_payment_processor())
        service.reminder_lead = timedelta(minutes=lead_minutes)
        try:
            sent = await service.send_due_reminders()
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        return sent


async def main() -> None:
    """Run once or keep polling according to worker mode."""
    logging.basicConfig(level=os.getenv("REMINDER_WORKER_LOG_LEVEL", "INFO"))
    mode = os.getenv("REMINDER_WORKER_MODE", "once").strip().lower()
    poll_seconds = int(os.getenv("REMINDER_WORKER_POLL_SECONDS", "60"))

    if mode == "once":
        sent = await run_cycle()
        logger.info("Session reminders worker sent %s reminders", sent)
        return

    while True:
        try:
            sent = await run_cycle()
            logger.info("Session reminders worker sent %s reminders", sent)
        except Exception:
            logger.exception("Session reminders worker cycle failed")
        await asyncio.sleep(poll_seconds)


if __name__ == "__main__":
    asyncio.run(main())
