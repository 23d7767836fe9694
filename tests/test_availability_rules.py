from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

import mentorhub.modules.availability.service as availability_service_module
from mentorhub.core.enums import RoleEnum
from mentorhub.modules.availability.service import AvailabilityService
from mentorhub.shared.exceptions import (
    AlreadyBookedException,
    InvalidRangeException,
    NotFoundException,
    OverlapException,
    SlotInUseException,
    UnauthorizedException,
    ValidationException,
)
from mentorhub.shared.utils import intervals_overlap

FIXED_NOW = datetime(2026, 10, 19, 9, 0, tzinfo=UTC)


@dataclass
class FakeSlot:
    id: UUID
    mentor_id: UUID
    start_at: datetime
    end_at: datetime
    is_booked: bool = False
    created_at: datetime = field(default_factory=lambda: FIXED_NOW)


class FakeAvailabilityRepository:
    def __init__(self, slots: list[FakeSlot] | None = None) -> None:
        self.slots: dict[UUID, FakeSlot] = {slot.id: slot for slot in slots or []}

    async def create_slot(self, mentor_id: UUID, start_at: datetime, end_at: datetime) -> FakeSlot:
        slot = FakeSlot(id=uuid4(), mentor_id=mentor_id, start_at=start_at, end_at=end_at)
        self.slots[slot.id] = slot
        return slot

    async def get_slot_by_id(self, slot_id: UUID) -> FakeSlot | None:
        return self.slots.get(slot_id)

    async def find_overlapping_open_slot(
        self,
        mentor_id: UUID,
        start_at: datetime,
        end_at: datetime,
    ) -> FakeSlot | None:
        for slot in self.slots.values():
            if (
                slot.mentor_id == mentor_id
                and not slot.is_booked
                and intervals_overlap(slot.start_at, slot.end_at, start_at, end_at)
            ):
                return slot
        return None

    async def list_open_slots(
        self,
        mentor_id: UUID,
        range_start: datetime | None,
        range_end: datetime | None,
        limit: int,
        offset: int,
        starts_after: datetime | None = None,
    ) -> tuple[list[FakeSlot], int]:
        matching = sorted(
            (
                slot
                for slot in self.slots.values()
                if slot.mentor_id == mentor_id
                and not slot.is_booked
                and (range_start is None or slot.start_at >= range_start)
                and (range_end is None or slot.end_at <= range_end)
                and (starts_after is None or slot.start_at > starts_after)
            ),
            key=lambda slot: slot.start_at,
        )
        return matching[offset : offset + limit], len(matching)

    async def list_mentor_slots(self, mentor_id: UUID) -> list[FakeSlot]:
        return sorted(
            (slot for slot in self.slots.values() if slot.mentor_id == mentor_id),
            key=lambda slot: slot.start_at,
        )

    async def reserve_slot(self, slot_id: UUID) -> FakeSlot | None:
        await asyncio.sleep(0)
        slot = self.slots.get(slot_id)
        if slot is None or slot.is_booked:
            return None
        slot.is_booked = True
        return slot

    async def unreserve_slot(self, slot_id: UUID) -> bool:
        slot = self.slots.get(slot_id)
        if slot is None or not slot.is_booked:
            return False
        slot.is_booked = False
        return True

    async def delete_open_slot(self, slot_id: UUID) -> bool:
        slot = self.slots.get(slot_id)
        if slot is None or slot.is_booked:
            return False
        del self.slots[slot_id]
        return True


def make_actor(user_id: UUID, role: RoleEnum = RoleEnum.MENTOR) -> SimpleNamespace:
    return SimpleNamespace(id=user_id, role=role)


def make_slot(mentor_id: UUID, hours_from_now: int, *, is_booked: bool = False) -> FakeSlot:
    start_at = FIXED_NOW + timedelta(hours=hours_from_now)
    return FakeSlot(
        id=uuid4(),
        mentor_id=mentor_id,
        start_at=start_at,
        end_at=start_at + timedelta(hours=1),
        is_booked=is_booked,
    )


@pytest.fixture(autouse=True)
def _fixed_clock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(availability_service_module, "utc_now", lambda: FIXED_NOW)


@pytest.mark.asyncio
async def test_publish_then_list_open_returns_the_slot() -> None:
    mentor_id = uuid4()
    service = AvailabilityService(FakeAvailabilityRepository())  # type: ignore[arg-type]
    start_at = FIXED_NOW + timedelta(days=1)

    slot = await service.publish(mentor_id, start_at, start_at + timedelta(hours=1), make_actor(mentor_id))
    items, total = await service.list_open(mentor_id, None, None, limit=20, offset=0)

    assert total == 1
    assert items == [slot]
    assert slot.is_booked is False


@pytest.mark.asyncio
async def test_publish_rejects_inverted_range() -> None:
    mentor_id = uuid4()
    service = AvailabilityService(FakeAvailabilityRepository())  # type: ignore[arg-type]
    start_at = FIXED_NOW + timedelta(days=1)

    with pytest.raises(InvalidRangeException):
        await service.publish(mentor_id, start_at, start_at, make_actor(mentor_id))
    with pytest.raises(InvalidRangeException):
        await service.publish(mentor_id, start_at, start_at - timedelta(hours=1), make_actor(mentor_id))


@pytest.mark.asyncio
async def test_publish_rejects_slot_in_the_past() -> None:
    mentor_id = uuid4()
    service = AvailabilityService(FakeAvailabilityRepository())  # type: ignore[arg-type]
    start_at = FIXED_NOW - timedelta(hours=2)

    with pytest.raises(ValidationException):
        await service.publish(mentor_id, start_at, start_at + timedelta(hours=1), make_actor(mentor_id))


@pytest.mark.asyncio
async def test_publish_treats_naive_datetimes_as_utc() -> None:
    mentor_id = uuid4()
    service = AvailabilityService(FakeAvailabilityRepository())  # type: ignore[arg-type]
    naive_start = datetime(2026, 10, 20, 10, 0)

    slot = await service.publish(mentor_id, naive_start, naive_start + timedelta(hours=1), make_actor(mentor_id))

    assert slot.start_at == datetime(2026, 10, 20, 10, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_publish_rejects_overlap_with_open_slot() -> None:
    mentor_id = uuid4()
    existing = make_slot(mentor_id, 24)
    service = AvailabilityService(FakeAvailabilityRepository([existing]))  # type: ignore[arg-type]

    with pytest.raises(OverlapException):
        await service.publish(
            mentor_id,
            existing.start_at + timedelta(minutes=30),
            existing.end_at + timedelta(minutes=30),
            make_actor(mentor_id),
        )


@pytest.mark.asyncio
async def test_publish_allows_adjacent_and_booked_overlap() -> None:
    mentor_id = uuid4()
    open_slot = make_slot(mentor_id, 24)
    booked_slot = make_slot(mentor_id, 48, is_booked=True)
    service = AvailabilityService(FakeAvailabilityRepository([open_slot, booked_slot]))  # type: ignore[arg-type]
    actor = make_actor(mentor_id)

    adjacent = await service.publish(mentor_id, open_slot.end_at, open_slot.end_at + timedelta(hours=1), actor)
    over_booked = await service.publish(mentor_id, booked_slot.start_at, booked_slot.end_at, actor)

    assert adjacent.start_at == open_slot.end_at
    assert over_booked.start_at == booked_slot.start_at


@pytest.mark.asyncio
async def test_publish_is_limited_to_own_mentor_account() -> None:
    mentor_id = uuid4()
    service = AvailabilityService(FakeAvailabilityRepository())  # type: ignore[arg-type]
    start_at = FIXED_NOW + timedelta(days=1)

    with pytest.raises(UnauthorizedException):
        await service.publish(mentor_id, start_at, start_at + timedelta(hours=1), make_actor(uuid4()))
    with pytest.raises(UnauthorizedException):
        await service.publish(
            mentor_id,
            start_at,
            start_at + timedelta(hours=1),
            make_actor(mentor_id, RoleEnum.MENTEE),
        )


@pytest.mark.asyncio
async def test_list_open_skips_booked_slots_and_honours_range() -> None:
    mentor_id = uuid4()
    early = make_slot(mentor_id, 24)
    booked = make_slot(mentor_id, 26, is_booked=True)
    late = make_slot(mentor_id, 72)
    other_mentor = make_slot(uuid4(), 25)
    service = AvailabilityService(
        FakeAvailabilityRepository([late, booked, early, other_mentor]),  # type: ignore[arg-type]
    )

    items, total = await service.list_open(mentor_id, None, None, limit=20, offset=0)
    assert [slot.id for slot in items] == [early.id, late.id]
    assert total == 2

    ranged, ranged_total = await service.list_open(
        mentor_id,
        FIXED_NOW,
        FIXED_NOW + timedelta(days=2),
        limit=20,
        offset=0,
    )
    assert [slot.id for slot in ranged] == [early.id]
    assert ranged_total == 1


@pytest.mark.asyncio
async def test_list_open_hides_slots_that_already_started() -> None:
    mentor_id = uuid4()
    past = make_slot(mentor_id, -3)
    starting_now = make_slot(mentor_id, 0)
    upcoming = make_slot(mentor_id, 5)
    service = AvailabilityService(
        FakeAvailabilityRepository([past, starting_now, upcoming]),  # type: ignore[arg-type]
    )

    items, total = await service.list_open(mentor_id, None, None, limit=20, offset=0)

    assert [slot.id for slot in items] == [upcoming.id]
    assert total == 1


@pytest.mark.asyncio
async def test_list_open_rejects_inverted_range() -> None:
    service = AvailabilityService(FakeAvailabilityRepository())  # type: ignore[arg-type]

    with pytest.raises(InvalidRangeException):
        await service.list_open(uuid4(), FIXED_NOW + timedelta(days=1), FIXED_NOW, limit=20, offset=0)


@pytest.mark.asyncio
async def test_iter_open_pages_through_every_open_slot() -> None:
    mentor_id = uuid4()
    slots = [make_slot(mentor_id, 24 + hour * 2) for hour in range(5)]
    service = AvailabilityService(FakeAvailabilityRepository(slots))  # type: ignore[arg-type]

    collected = [slot.id async for slot in service.iter_open(mentor_id, page_size=2)]
    restarted = [slot.id async for slot in service.iter_open(mentor_id, page_size=2)]

    assert collected == [slot.id for slot in slots]
    assert restarted == collected


@pytest.mark.asyncio
async def test_concurrent_reservations_have_exactly_one_winner() -> None:
    slot = make_slot(uuid4(), 24)
    service = AvailabilityService(FakeAvailabilityRepository([slot]))  # type: ignore[arg-type]

    results = await asyncio.gather(*(service.reserve(slot.id) for _ in range(5)), return_exceptions=True)

    winners = [result for result in results if not isinstance(result, Exception)]
    losers = [result for result in results if isinstance(result, AlreadyBookedException)]
    assert len(winners) == 1
    assert len(losers) == 4
    assert slot.is_booked is True


@pytest.mark.asyncio
async def test_reserve_missing_slot_raises_not_found() -> None:
    service = AvailabilityService(FakeAvailabilityRepository())  # type: ignore[arg-type]

    with pytest.raises(NotFoundException):
        await service.reserve(uuid4())


@pytest.mark.asyncio
async def test_release_booked_slot_is_refused_and_slot_kept() -> None:
    mentor_id = uuid4()
    slot = make_slot(mentor_id, 24, is_booked=True)
    repository = FakeAvailabilityRepository([slot])
    service = AvailabilityService(repository)  # type: ignore[arg-type]

    with pytest.raises(SlotInUseException):
        await service.release(slot.id, make_actor(mentor_id))
    assert slot.id in repository.slots


@pytest.mark.asyncio
async def test_release_open_slot_by_owner_only() -> None:
    mentor_id = uuid4()
    slot = make_slot(mentor_id, 24)
    repository = FakeAvailabilityRepository([slot])
    service = AvailabilityService(repository)  # type: ignore[arg-type]

    with pytest.raises(UnauthorizedException):
        await service.release(slot.id, make_actor(uuid4()))

    await service.release(slot.id, make_actor(mentor_id))
    assert slot.id not in repository.slots

    with pytest.raises(NotFoundException):
        await service.release(slot.id, make_actor(mentor_id))
