"""Availability repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.modules.availability.models import AvailabilitySlot
from mentorhub.shared.exceptions import OverlapException


class AvailabilityRepository:
    """DB access for mentor availability slots."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_slot(self, mentor_id: UUID, start_at: datetime, end_at: datetime) -> AvailabilitySlot:
        slot = AvailabilitySlot(mentor_id=mentor_id, start_at=start_at, end_at=end_at, is_booked=False)
        try:
            async with self.session.begin_nested():
                self.session.add(slot)
        except IntegrityError as exc:
            # exclusion constraint lost a race against a concurrent publish
            raise OverlapException("Slot overlaps another open slot of this mentor") from exc
        return slot

    async def get_slot_by_id(self, slot_id: UUID) -> AvailabilitySlot | None:
        stmt = select(AvailabilitySlot).where(AvailabilitySlot.id == slot_id)
        return await self.session.scalar(stmt)

    async def find_overlapping_open_slot(
        self,
        mentor_id: UUID,
        start_at: datetime,
        end_at: datetime,
    ) -> AvailabilitySlot | None:
        stmt = (
            select(AvailabilitySlot)
            .where(
                AvailabilitySlot.mentor_id == mentor_id,
                AvailabilitySlot.is_booked.is_(False),
                AvailabilitySlot.start_at < end_at,
                AvailabilitySlot.end_at > start_at,
            )
            .limit(1)
        )
        return await self.session.scalar(stmt)

    async def list_open_slots(
        self,
        mentor_id: UUID,
        range_start: datetime | None,
        range_end: datetime | None,
        limit: int,
        offset: int,
        starts_after: datetime | None = None,
    ) -> tuple[list[AvailabilitySlot], int]:
        base_stmt: Select[tuple[AvailabilitySlot]] = select(AvailabilitySlot).where(
            AvailabilitySlot.mentor_id == mentor_id,
            AvailabilitySlot.is_booked.is_(False),
        )
        if starts_after is not None:
            base_stmt = base_stmt.where(AvailabilitySlot.start_at > starts_after)
        if range_start is not None:
            base_stmt = base_stmt.where(AvailabilitySlot.start_at >= range_start)
        if range_end is not None:
            base_stmt = base_stmt.where(AvailabilitySlot.end_at <= range_end)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = (
            base_stmt.order_by(AvailabilitySlot.start_at.asc(), AvailabilitySlot.id.asc())
            .limit(limit)
            .offset(offset)
        )
        items = (await self.session.scalars(stmt)).all()
        return list(items), total

    async def list_mentor_slots(self, mentor_id: UUID) -> list[AvailabilitySlot]:
        stmt = (
            select(AvailabilitySlot)
            .where(AvailabilitySlot.mentor_id == mentor_id)
            .order_by(AvailabilitySlot.start_at.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def reserve_slot(self, slot_id: UUID) -> AvailabilitySlot | None:
        """Flip is_booked false -> true in one conditional UPDATE.

        Returns None when no row matched: the slot is missing or another
        reservation already won.
        """
        stmt = (
            update(AvailabilitySlot)
            .where(AvailabilitySlot.id == slot_id, AvailabilitySlot.is_booked.is_(False))
            .values(is_booked=True)
            .returning(AvailabilitySlot)
            .execution_options(populate_existing=True)
        )
        return await self.session.scalar(stmt)

    async def unreserve_slot(self, slot_id: UUID) -> bool:
        stmt = (
            update(AvailabilitySlot)
            .where(AvailabilitySlot.id == slot_id, AvailabilitySlot.is_booked.is_(True))
            .values(is_booked=False)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def delete_open_slot(self, slot_id: UUID) -> bool:
        stmt = (
            delete(AvailabilitySlot)
            .where(AvailabilitySlot.id == slot_id, AvailabilitySlot.is_booked.is_(False))
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
