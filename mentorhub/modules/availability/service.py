"""Availability store: publishing, listing, reserving and releasing slots."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from datetime import datetime, timedelta
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.config import get_settings
from mentorhub.core.database import get_db_session
from mentorhub.core.enums import RoleEnum
from mentorhub.core.metrics import SLOT_RESERVATION_CONFLICTS_TOTAL
from mentorhub.modules.availability.models import AvailabilitySlot
from mentorhub.modules.availability.repository import AvailabilityRepository
from mentorhub.modules.identity.models import User
from mentorhub.shared.exceptions import (
    AlreadyBookedException,
    InvalidRangeException,
    NotFoundException,
    OverlapException,
    SlotInUseException,
    UnauthorizedException,
    ValidationException,
)
from mentorhub.shared.utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)
settings = get_settings()


class AvailabilityService:
    """Owns mentor slots and their booked flag."""

    def __init__(self, repository: AvailabilityRepository) -> None:
        self.repository = repository

    async def publish(
        self,
        mentor_id: UUID,
        start_at: datetime,
        end_at: datetime,
        actor: User,
    ) -> AvailabilitySlot:
        """Publish an open slot for the acting mentor."""
        if actor.role != RoleEnum.MENTOR or actor.id != mentor_id:
            raise UnauthorizedException("Only the mentor can publish own availability")

        start_at = ensure_utc(start_at)
        end_at = ensure_utc(end_at)
        if start_at >= end_at:
            raise InvalidRangeException("Slot start must be before its end")
        if end_at - start_at < timedelta(minutes=settings.slot_min_duration_minutes):
            raise ValidationException(
                f"Slot must last at least {settings.slot_min_duration_minutes} minutes",
            )
        if start_at <= utc_now():
            raise ValidationException("Slot must start in the future")

        clash = await self.repository.find_overlapping_open_slot(mentor_id, start_at, end_at)
        if clash is not None:
            raise OverlapException(
                f"Slot overlaps open slot {clash.id} ({clash.start_at.isoformat()} - {clash.end_at.isoformat()})",
            )

        slot = await self.repository.create_slot(mentor_id, start_at, end_at)
        logger.info("Mentor %s published slot %s", mentor_id, slot.id)
        return slot

    async def list_open(
        self,
        mentor_id: UUID,
        range_start: datetime | None,
        range_end: datetime | None,
        limit: int,
        offset: int,
    ) -> tuple[list[AvailabilitySlot], int]:
        """List unbooked future slots of a mentor, optionally within [range_start, range_end)."""
        range_start = ensure_utc(range_start) if range_start is not None else None
        range_end = ensure_utc(range_end) if range_end is not None else None
        if range_start is not None and range_end is not None and range_start >= range_end:
            raise InvalidRangeException("Date range start must be before its end")
        return await self.repository.list_open_slots(
            mentor_id=mentor_id,
            range_start=range_start,
            range_end=range_end,
            limit=limit,
            offset=offset,
            starts_after=utc_now(),
        )

    async def iter_open(
        self,
        mentor_id: UUID,
        range_start: datetime | None = None,
        range_end: datetime | None = None,
        *,
        page_size: int = 50,
    ) -> AsyncIterator[AvailabilitySlot]:
        """Lazily page through all open slots; each call starts from the beginning."""
        offset = 0
        while True:
            items, total = await self.list_open(mentor_id, range_start, range_end, page_size, offset)
            for slot in items:
                yield slot
            offset += len(items)
            if not items or offset >= total:
                return

    async def list_mentor_slots(self, mentor_id: UUID, actor: User) -> list[AvailabilitySlot]:
        """All slots of a mentor including booked ones (owner view)."""
        if actor.id != mentor_id:
            raise UnauthorizedException("Mentors can only view their own slot history")
        return await self.repository.list_mentor_slots(mentor_id)

    async def get_slot(self, slot_id: UUID) -> AvailabilitySlot:
        slot = await self.repository.get_slot_by_id(slot_id)
        if slot is None:
            raise NotFoundException("Slot not found")
        return slot

    def ensure_bookable(self, slot: AvailabilitySlot) -> None:
        if ensure_utc(slot.start_at) <= utc_now():
            raise ValidationException("Slot has already started")

    async def reserve(self, slot_id: UUID) -> AvailabilitySlot:
        """Atomically mark the slot booked; exactly one concurrent caller wins."""
        slot = await self.repository.reserve_slot(slot_id)
        if slot is not None:
            return slot

        if await self.repository.get_slot_by_id(slot_id) is None:
            raise NotFoundException("Slot not found")
        SLOT_RESERVATION_CONFLICTS_TOTAL.inc()
        raise AlreadyBookedException("Slot is already booked")

    async def unreserve(self, slot_id: UUID) -> None:
        """Undo a reservation whose session could not be created."""
        if not await self.repository.unreserve_slot(slot_id):
            logger.error("Compensating release found slot %s not booked", slot_id)

    async def release(self, slot_id: UUID, actor: User) -> None:
        """Remove an unbooked slot owned by the acting mentor."""
        slot = await self.get_slot(slot_id)
        if slot.mentor_id != actor.id:
            raise UnauthorizedException("Only the owning mentor can remove this slot")
        if slot.is_booked:
            raise SlotInUseException("Booked slots cannot be removed")

        if not await self.repository.delete_open_slot(slot_id):
            raise SlotInUseException("Slot was booked before it could be removed")
        logger.info("Mentor %s removed slot %s", actor.id, slot_id)


async def get_availability_service(session: AsyncSession = Depends(get_db_session)) -> AvailabilityService:
    """Dependency provider for availability service."""
    return AvailabilityService(AvailabilityRepository(session))
