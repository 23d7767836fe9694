from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

import mentorhub.modules.video.service as video_service_module
from mentorhub.core.enums import RoleEnum, SessionPaymentStatusEnum, SessionStatusEnum, VideoCallStatusEnum
from mentorhub.modules.video.provider import SimulatedVideoProvider
from mentorhub.modules.video.service import VideoService
from mentorhub.shared.exceptions import (
    ConflictException,
    IllegalTransitionException,
    UnauthorizedException,
    VideoProviderException,
)

START_AT = datetime(2026, 10, 19, 9, 0, tzinfo=UTC)


@dataclass
class FakeSession:
    id: UUID
    mentor_id: UUID
    mentee_id: UUID
    start_at: datetime
    end_at: datetime
    status: SessionStatusEnum = SessionStatusEnum.CONFIRMED
    payment_status: SessionPaymentStatusEnum = SessionPaymentStatusEnum.COMPLETED
    video_call_ref: str | None = None


@dataclass
class FakeCall:
    id: UUID
    session_id: UUID
    room_ref: str
    status: VideoCallStatusEnum = VideoCallStatusEnum.PENDING
    started_at: datetime | None = None
    ended_at: datetime | None = None


class FakeSessionsRepository:
    def __init__(self, session: FakeSession) -> None:
        self.session = session

    async def get_session_by_id(self, session_id: UUID) -> FakeSession | None:
        return self.session if session_id == self.session.id else None

    async def update_details(self, session: FakeSession, **changes) -> FakeSession:
        for key, value in changes.items():
            setattr(session, key, value)
        return session


class FakeBookingService:
    def __init__(self, session: FakeSession) -> None:
        self.sessions_repository = FakeSessionsRepository(session)
        self.completed: list[UUID] = []

    async def complete_session(self, session_id: UUID, actor=None) -> FakeSession:
        self.completed.append(session_id)
        session = self.sessions_repository.session
        session.status = SessionStatusEnum.COMPLETED
        return session


class FakeVideoRepository:
    def __init__(self) -> None:
        self.calls: dict[UUID, FakeCall] = {}

    async def get_call_by_session_id(self, session_id: UUID) -> FakeCall | None:
        return self.calls.get(session_id)

    async def create_call(self, session_id: UUID, room_ref: str) -> FakeCall:
        call = FakeCall(id=uuid4(), session_id=session_id, room_ref=room_ref)
        self.calls[session_id] = call
        return call

    async def update_call(self, call: FakeCall, **changes) -> FakeCall:
        for key, value in changes.items():
            setattr(call, key, value)
        return call


class HangingProvider(SimulatedVideoProvider):
    async def create_or_join_call(self, room_ref: str, user_id: UUID):
        await asyncio.sleep(1)
        return await super().create_or_join_call(room_ref, user_id)


class RecordingProvider(SimulatedVideoProvider):
    def __init__(self) -> None:
        super().__init__()
        self.ended_rooms: list[str] = []

    async def end_call(self, room_ref: str) -> None:
        self.ended_rooms.append(room_ref)
        await super().end_call(room_ref)


def make_session(**overrides) -> FakeSession:
    fields = {
        "id": uuid4(),
        "mentor_id": uuid4(),
        "mentee_id": uuid4(),
        "start_at": START_AT,
        "end_at": START_AT + timedelta(hours=1),
    }
    fields.update(overrides)
    return FakeSession(**fields)


def make_service(session: FakeSession, provider=None, *, timeout_seconds: float = 1.0):
    booking = FakeBookingService(session)
    repository = FakeVideoRepository()
    service = VideoService(
        repository=repository,  # type: ignore[arg-type]
        booking_service=booking,  # type: ignore[arg-type]
        provider=provider or SimulatedVideoProvider(),
        timeout_seconds=timeout_seconds,
    )
    return service, booking, repository


def actor(user_id: UUID, role: RoleEnum = RoleEnum.MENTEE) -> SimpleNamespace:
    return SimpleNamespace(id=user_id, role=role)


@pytest.fixture(autouse=True)
def _during_session(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(video_service_module, "utc_now", lambda: START_AT + timedelta(minutes=5))


@pytest.mark.asyncio
async def test_join_starts_call_and_links_session() -> None:
    session = make_session()
    service, _, repository = make_service(session)

    call, handle = await service.join(session.id, actor(session.mentee_id))

    assert call.status == VideoCallStatusEnum.STARTED
    assert call.started_at == START_AT + timedelta(minutes=5)
    assert session.video_call_ref == call.room_ref
    assert handle.join_url.endswith(call.room_ref)

    again, _ = await service.join(session.id, actor(session.mentor_id, RoleEnum.MENTOR))
    assert again.id == call.id
    assert len(repository.calls) == 1


@pytest.mark.asyncio
async def test_join_requires_payment() -> None:
    session = make_session(payment_status=SessionPaymentStatusEnum.PENDING)
    service, _, repository = make_service(session)

    with pytest.raises(UnauthorizedException):
        await service.join(session.id, actor(session.mentee_id))
    assert repository.calls == {}


@pytest.mark.asyncio
async def test_join_is_for_participants_only() -> None:
    session = make_session()
    service, _, _ = make_service(session)

    with pytest.raises(UnauthorizedException):
        await service.join(session.id, actor(uuid4()))


@pytest.mark.asyncio
async def test_end_marks_call_ended_and_completes_session() -> None:
    session = make_session()
    service, booking, repository = make_service(session)
    await service.join(session.id, actor(session.mentor_id, RoleEnum.MENTOR))

    completed = await service.end(session.id, actor(session.mentee_id))

    assert completed.status == SessionStatusEnum.COMPLETED
    assert booking.completed == [session.id]
    assert repository.calls[session.id].status == VideoCallStatusEnum.ENDED


@pytest.mark.asyncio
async def test_end_without_running_call_is_a_conflict() -> None:
    session = make_session()
    service, booking, _ = make_service(session)

    with pytest.raises(ConflictException):
        await service.end(session.id, actor(session.mentor_id, RoleEnum.MENTOR))
    assert booking.completed == []


@pytest.mark.asyncio
async def test_provider_timeout_is_reported() -> None:
    session = make_session()
    service, _, _ = make_service(session, HangingProvider(), timeout_seconds=0.01)

    with pytest.raises(VideoProviderException):
        await service.join(session.id, actor(session.mentee_id))


@pytest.mark.asyncio
async def test_end_leaves_room_running_when_session_is_no_longer_confirmed() -> None:
    session = make_session()
    provider = RecordingProvider()
    service, booking, _ = make_service(session, provider)
    call, _ = await service.join(session.id, actor(session.mentee_id))
    session.status = SessionStatusEnum.CANCELLED

    with pytest.raises(IllegalTransitionException):
        await service.end(session.id, actor(session.mentor_id, RoleEnum.MENTOR))

    assert provider.ended_rooms == []
    assert call.status == VideoCallStatusEnum.STARTED
    assert booking.completed == []
