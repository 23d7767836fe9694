from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

from mentorhub.core.enums import RoleEnum
from mentorhub.modules.mentors.schemas import MentorProfileUpdate
from mentorhub.modules.mentors.service import MentorsService
from mentorhub.shared.exceptions import NotFoundException, UnauthorizedException


@dataclass
class FakeProfile:
    user_id: UUID
    bio: str = ""
    domains: list[str] = field(default_factory=list)
    experience_years: int = 0
    hourly_rate: Decimal = Decimal("0")
    company: str | None = None
    position: str | None = None
    education: str | None = None
    languages: list[str] = field(default_factory=list)


class FakeMentorsRepository:
    def __init__(self, mentors: list[SimpleNamespace], open_slots: dict[UUID, int] | None = None) -> None:
        self.mentors = {mentor.id: mentor for mentor in mentors}
        self.profiles: dict[UUID, FakeProfile] = {}
        self.open_slots = open_slots or {}

    async def get_mentor(self, mentor_id: UUID) -> SimpleNamespace | None:
        return self.mentors.get(mentor_id)

    async def get_profile_by_user_id(self, user_id: UUID) -> FakeProfile | None:
        return self.profiles.get(user_id)

    async def create_profile(self, user_id: UUID, **fields) -> FakeProfile:
        profile = FakeProfile(user_id=user_id, **fields)
        self.profiles[user_id] = profile
        return profile

    async def update_profile(self, profile: FakeProfile, **changes) -> FakeProfile:
        for key, value in changes.items():
            setattr(profile, key, value)
        return profile

    async def count_open_slots(self, mentor_id: UUID) -> int:
        return self.open_slots.get(mentor_id, 0)

    async def list_mentors(self, domain: str | None, limit: int, offset: int):
        rows = [
            (mentor, self.profiles.get(mentor.id), self.open_slots.get(mentor.id, 0))
            for mentor in sorted(self.mentors.values(), key=lambda item: item.name)
            if domain is None or (mentor.id in self.profiles and domain in self.profiles[mentor.id].domains)
        ]
        return rows[offset : offset + limit], len(rows)


def make_mentor(name: str) -> SimpleNamespace:
    return SimpleNamespace(id=uuid4(), name=name, avatar_url=None, role=RoleEnum.MENTOR)


@pytest.mark.asyncio
async def test_mentor_without_profile_is_listed_with_open_slot_count() -> None:
    mentor = make_mentor("Grace")
    service = MentorsService(FakeMentorsRepository([mentor], {mentor.id: 3}))  # type: ignore[arg-type]

    card = await service.get_mentor(mentor.id)

    assert card.profile is None
    assert card.open_slots == 3


@pytest.mark.asyncio
async def test_upsert_profile_creates_then_updates() -> None:
    mentor = make_mentor("Grace")
    repository = FakeMentorsRepository([mentor])
    service = MentorsService(repository)  # type: ignore[arg-type]

    created = await service.upsert_profile(
        MentorProfileUpdate(bio="Compilers", domains=["backend"], hourly_rate=Decimal("90")),
        mentor,
    )
    updated = await service.upsert_profile(MentorProfileUpdate(experience_years=20), mentor)

    assert updated is created
    assert updated.bio == "Compilers"
    assert updated.experience_years == 20
    assert (await service.get_mentor(mentor.id)).profile.domains == ["backend"]


@pytest.mark.asyncio
async def test_mentees_cannot_have_mentor_profiles() -> None:
    service = MentorsService(FakeMentorsRepository([]))  # type: ignore[arg-type]
    mentee = SimpleNamespace(id=uuid4(), role=RoleEnum.MENTEE)

    with pytest.raises(UnauthorizedException):
        await service.upsert_profile(MentorProfileUpdate(bio="hi"), mentee)


@pytest.mark.asyncio
async def test_list_mentors_filters_by_domain() -> None:
    backend = make_mentor("Ada")
    data = make_mentor("Bob")
    repository = FakeMentorsRepository([backend, data])
    service = MentorsService(repository)  # type: ignore[arg-type]
    await service.upsert_profile(MentorProfileUpdate(domains=["backend"]), backend)
    await service.upsert_profile(MentorProfileUpdate(domains=["data-science"]), data)

    cards, total = await service.list_mentors("backend", limit=20, offset=0)

    assert total == 1
    assert [card.name for card in cards] == ["Ada"]


@pytest.mark.asyncio
async def test_unknown_mentor_is_not_found() -> None:
    service = MentorsService(FakeMentorsRepository([]))  # type: ignore[arg-type]

    with pytest.raises(NotFoundException):
        await service.get_mentor(uuid4())
