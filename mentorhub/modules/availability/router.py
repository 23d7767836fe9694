"""Availability API router."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from mentorhub.core.enums import RoleEnum
from mentorhub.modules.availability.schemas import SlotCreate, SlotRead
from mentorhub.modules.availability.service import AvailabilityService, get_availability_service
from mentorhub.modules.identity.service import require_roles
from mentorhub.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/availability", tags=["availability"])


@router.post("/slots", response_model=SlotRead, status_code=status.HTTP_201_CREATED)
async def publish_slot(
    payload: SlotCreate,
    service: AvailabilityService = Depends(get_availability_service),
    current_user=Depends(require_roles(RoleEnum.MENTOR)),
) -> SlotRead:
    """Publish an open slot for the current mentor."""
    slot = await service.publish(current_user.id, payload.start_at, payload.end_at, current_user)
    return SlotRead.model_validate(slot)


@router.get("/slots/open", response_model=Page[SlotRead])
async def list_open_slots(
    mentor_id: UUID = Query(),
    range_start: datetime | None = Query(default=None),
    range_end: datetime | None = Query(default=None),
    pagination=Depends(get_pagination_params),
    service: AvailabilityService = Depends(get_availability_service),
) -> Page[SlotRead]:
    """List bookable slots of a mentor."""
    items, total = await service.list_open(
        mentor_id,
        range_start,
        range_end,
        pagination.limit,
        pagination.offset,
    )
    serialized = [SlotRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/slots/mine", response_model=list[SlotRead])
async def list_my_slots(
    service: AvailabilityService = Depends(get_availability_service),
    current_user=Depends(require_roles(RoleEnum.MENTOR)),
) -> list[SlotRead]:
    """List all slots of the current mentor, booked ones included."""
    items = await service.list_mentor_slots(current_user.id, current_user)
    return [SlotRead.model_validate(item) for item in items]


@router.delete("/slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def release_slot(
    slot_id: UUID,
    service: AvailabilityService = Depends(get_availability_service),
    current_user=Depends(require_roles(RoleEnum.MENTOR)),
) -> None:
    """Remove an unbooked slot."""
    await service.release(slot_id, current_user)
