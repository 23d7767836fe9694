from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from prometheus_client import REGISTRY
from sqlalchemy.exc import SQLAlchemyError

from mentorhub.core.enums import NotificationTypeEnum, SessionPaymentStatusEnum, SessionStatusEnum
from mentorhub.modules.notifications.dispatcher import NotificationDispatcher
from mentorhub.modules.sessions.state_machine import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    SessionStateMachine,
    ensure_transition_allowed,
)
from mentorhub.shared.exceptions import IllegalTransitionException

FIXED_NOW = datetime(2026, 10, 19, 9, 0, tzinfo=UTC)


@dataclass
class FakeSession:
    id: UUID
    mentor_id: UUID
    mentee_id: UUID
    start_at: datetime
    end_at: datetime
    status: SessionStatusEnum
    payment_status: SessionPaymentStatusEnum = SessionPaymentStatusEnum.PENDING
    confirmed_at: datetime | None = None
    declined_at: datetime | None = None
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_by_id: UUID | None = None
    cancellation_reason: str | None = None


class FakeSessionsRepository:
    def __init__(self, sessions: list[FakeSession]) -> None:
        self.sessions = {session.id: session for session in sessions}

    async def transition_status(
        self,
        session_id: UUID,
        expected: SessionStatusEnum,
        target: SessionStatusEnum,
        **changes,
    ) -> FakeSession | None:
        stored = self.sessions.get(session_id)
        if stored is None or stored.status != expected:
            return None
        stored.status = target
        for key, value in changes.items():
            setattr(stored, key, value)
        return stored


class FakeNotificationsRepository:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.created: list[SimpleNamespace] = []

    async def create_notification(self, user_id, type, title, message, related_session_id):  # noqa: A002
        if self.fail:
            raise SQLAlchemyError("notifications table unavailable")
        notification = SimpleNamespace(
            id=uuid4(),
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            related_session_id=related_session_id,
        )
        self.created.append(notification)
        return notification


def make_session(status: SessionStatusEnum) -> FakeSession:
    start_at = FIXED_NOW + timedelta(days=1)
    return FakeSession(
        id=uuid4(),
        mentor_id=uuid4(),
        mentee_id=uuid4(),
        start_at=start_at,
        end_at=start_at + timedelta(hours=1),
        status=status,
    )


def make_machine(
    sessions: list[FakeSession],
    *,
    notifications_fail: bool = False,
) -> tuple[SessionStateMachine, FakeNotificationsRepository]:
    notifications = FakeNotificationsRepository(fail=notifications_fail)
    machine = SessionStateMachine(
        FakeSessionsRepository(sessions),  # type: ignore[arg-type]
        NotificationDispatcher(notifications),  # type: ignore[arg-type]
        now_provider=lambda: FIXED_NOW,
    )
    return machine, notifications


def _sample(name: str, labels: dict[str, str]) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.asyncio
async def test_accept_confirms_and_notifies_mentee() -> None:
    session = make_session(SessionStatusEnum.REQUESTED)
    machine, notifications = make_machine([session])

    updated = await machine.accept(session)

    assert updated.status == SessionStatusEnum.CONFIRMED
    assert updated.confirmed_at == FIXED_NOW
    assert [(n.user_id, n.type) for n in notifications.created] == [
        (session.mentee_id, NotificationTypeEnum.CONFIRMATION),
    ]
    assert notifications.created[0].related_session_id == session.id


@pytest.mark.asyncio
async def test_decline_sends_declined_summary_to_mentee() -> None:
    session = make_session(SessionStatusEnum.REQUESTED)
    machine, notifications = make_machine([session])

    updated = await machine.decline(session)

    assert updated.status == SessionStatusEnum.DECLINED
    assert updated.declined_at == FIXED_NOW
    (notification,) = notifications.created
    assert notification.user_id == session.mentee_id
    assert notification.type == NotificationTypeEnum.SUMMARY
    assert notification.title == "Session Declined"


@pytest.mark.asyncio
async def test_cancel_notifies_the_counterpart_of_the_actor() -> None:
    session = make_session(SessionStatusEnum.CONFIRMED)
    machine, notifications = make_machine([session])

    updated = await machine.cancel(session, session.mentee_id, "Sick")

    assert updated.status == SessionStatusEnum.CANCELLED
    assert updated.cancelled_by_id == session.mentee_id
    assert updated.cancellation_reason == "Sick"
    (notification,) = notifications.created
    assert notification.user_id == session.mentor_id
    assert notification.type == NotificationTypeEnum.CANCELLATION
    assert "Reason: Sick" in notification.message


@pytest.mark.asyncio
async def test_complete_sends_summary_to_mentee() -> None:
    session = make_session(SessionStatusEnum.CONFIRMED)
    machine, notifications = make_machine([session])

    updated = await machine.complete(session)

    assert updated.status == SessionStatusEnum.COMPLETED
    assert updated.completed_at == FIXED_NOW
    (notification,) = notifications.created
    assert notification.user_id == session.mentee_id
    assert notification.title == "Session Summary Available"


@pytest.mark.asyncio
async def test_requested_session_cannot_be_completed() -> None:
    session = make_session(SessionStatusEnum.REQUESTED)
    machine, notifications = make_machine([session])

    with pytest.raises(IllegalTransitionException):
        await machine.complete(session)

    assert session.status == SessionStatusEnum.REQUESTED
    assert notifications.created == []


@pytest.mark.asyncio
@pytest.mark.parametrize("status", sorted(TERMINAL_STATUSES))
async def test_terminal_sessions_reject_every_transition(status: SessionStatusEnum) -> None:
    session = make_session(status)
    machine, notifications = make_machine([session])

    for attempt in (
        machine.accept(session),
        machine.decline(session),
        machine.cancel(session, session.mentor_id, None),
        machine.complete(session),
    ):
        with pytest.raises(IllegalTransitionException):
            await attempt

    assert session.status == status
    assert notifications.created == []


def test_transition_table_only_allows_documented_edges() -> None:
    allowed = {(source, target) for source, targets in ALLOWED_TRANSITIONS.items() for target in targets}

    assert allowed == {
        (SessionStatusEnum.REQUESTED, SessionStatusEnum.CONFIRMED),
        (SessionStatusEnum.REQUESTED, SessionStatusEnum.DECLINED),
        (SessionStatusEnum.CONFIRMED, SessionStatusEnum.CANCELLED),
        (SessionStatusEnum.CONFIRMED, SessionStatusEnum.COMPLETED),
    }
    with pytest.raises(IllegalTransitionException):
        ensure_transition_allowed(SessionStatusEnum.REQUESTED, SessionStatusEnum.CANCELLED)


@pytest.mark.asyncio
async def test_stale_view_loses_to_concurrent_transition() -> None:
    session = make_session(SessionStatusEnum.REQUESTED)
    stale_view = replace(session)
    machine, notifications = make_machine([session])

    await machine.decline(session)

    with pytest.raises(IllegalTransitionException):
        await machine.accept(stale_view)
    assert session.status == SessionStatusEnum.DECLINED
    assert len(notifications.created) == 1


@pytest.mark.asyncio
async def test_notification_failure_does_not_undo_transition() -> None:
    session = make_session(SessionStatusEnum.REQUESTED)
    machine, _ = make_machine([session], notifications_fail=True)
    failures_before = _sample(
        "mentorhub_notification_delivery_failures_total",
        {"type": "confirmation"},
    )

    updated = await machine.accept(session)

    assert updated.status == SessionStatusEnum.CONFIRMED
    assert _sample(
        "mentorhub_notification_delivery_failures_total",
        {"type": "confirmation"},
    ) == failures_before + 1


@pytest.mark.asyncio
async def test_transitions_are_counted() -> None:
    session = make_session(SessionStatusEnum.CONFIRMED)
    machine, _ = make_machine([session])
    labels = {"from_status": "confirmed", "to_status": "completed"}
    before = _sample("mentorhub_session_transitions_total", labels)

    await machine.complete(session)

    assert _sample("mentorhub_session_transitions_total", labels) == before + 1
