"""Mentor directory API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from mentorhub.core.enums import RoleEnum
from mentorhub.modules.identity.service import require_roles
from mentorhub.modules.mentors.schemas import MentorProfileRead, MentorProfileUpdate, MentorRead
from mentorhub.modules.mentors.service import MentorsService, get_mentors_service
from mentorhub.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/mentors", tags=["mentors"])


@router.get("", response_model=Page[MentorRead])
async def list_mentors(
    domain: str | None = Query(default=None, max_length=64),
    pagination=Depends(get_pagination_params),
    service: MentorsService = Depends(get_mentors_service),
) -> Page[MentorRead]:
    """Browse mentors, optionally filtered by expertise domain."""
    items, total = await service.list_mentors(domain, pagination.limit, pagination.offset)
    return build_page(items, total, pagination)


@router.get("/{mentor_id}", response_model=MentorRead)
async def get_mentor(
    mentor_id: UUID,
    service: MentorsService = Depends(get_mentors_service),
) -> MentorRead:
    return await service.get_mentor(mentor_id)


@router.put("/me/profile", response_model=MentorProfileRead)
async def upsert_my_profile(
    payload: MentorProfileUpdate,
    service: MentorsService = Depends(get_mentors_service),
    current_user=Depends(require_roles(RoleEnum.MENTOR)),
) -> MentorProfileRead:
    profile = await service.upsert_profile(payload, current_user)
    return MentorProfileRead.model_validate(profile)
