"""Session lifecycle rules.

    requested --accept-->   confirmed
    requested --decline-->  declined
    confirmed --cancel-->   cancelled
    confirmed --complete--> completed

Each transition is a conditional update on the status the caller observed,
followed by exactly one dispatcher call. A failed notification is logged and
counted; the status change stands.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from mentorhub.core.enums import NotificationTypeEnum, SessionStatusEnum
from mentorhub.core.metrics import NOTIFICATION_DELIVERY_FAILURES_TOTAL, SESSION_TRANSITIONS_TOTAL
from mentorhub.modules.notifications.dispatcher import NotificationDispatcher
from mentorhub.modules.sessions.models import MentoringSession
from mentorhub.modules.sessions.repository import SessionsRepository
from mentorhub.shared.exceptions import IllegalTransitionException, NotificationDeliveryException
from mentorhub.shared.utils import utc_now

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[SessionStatusEnum, frozenset[SessionStatusEnum]] = {
    SessionStatusEnum.REQUESTED: frozenset({SessionStatusEnum.CONFIRMED, SessionStatusEnum.DECLINED}),
    SessionStatusEnum.CONFIRMED: frozenset({SessionStatusEnum.COMPLETED, SessionStatusEnum.CANCELLED}),
    SessionStatusEnum.DECLINED: frozenset(),
    SessionStatusEnum.COMPLETED: frozenset(),
    SessionStatusEnum.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)


def ensure_transition_allowed(current: SessionStatusEnum, target: SessionStatusEnum) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise IllegalTransitionException(f"Session cannot move from {current} to {target}")


def format_start(session: MentoringSession) -> str:
    return session.start_at.strftime("%Y-%m-%d %H:%M UTC")


class SessionStateMachine:
    """Applies legal status transitions and emits their notifications."""

    def __init__(
        self,
        repository: SessionsRepository,
        dispatcher: NotificationDispatcher,
        *,
        now_provider=utc_now,
    ) -> None:
        self.repository = repository
        self.dispatcher = dispatcher
        self.now_provider = now_provider

    async def announce_request(self, session: MentoringSession) -> None:
        """Tell the mentor about a freshly created request."""
        await self._notify_safely(
            NotificationTypeEnum.REQUEST,
            session,
            {"start_at": format_start(session)},
        )

    async def announce_reminder(self, session: MentoringSession) -> None:
        await self._notify_safely(
            NotificationTypeEnum.REMINDER,
            session,
            {"start_at": format_start(session)},
        )

    async def accept(self, session: MentoringSession) -> MentoringSession:
        return await self._transition(
            session,
            SessionStatusEnum.CONFIRMED,
            NotificationTypeEnum.CONFIRMATION,
            {},
            confirmed_at=self.now_provider(),
        )

    async def decline(self, session: MentoringSession) -> MentoringSession:
        return await self._transition(
            session,
            SessionStatusEnum.DECLINED,
            NotificationTypeEnum.SUMMARY,
            {"variant": "declined"},
            declined_at=self.now_provider(),
        )

    async def cancel(self, session: MentoringSession, actor_id: UUID, reason: str | None) -> MentoringSession:
        return await self._transition(
            session,
            SessionStatusEnum.CANCELLED,
            NotificationTypeEnum.CANCELLATION,
            {"reason": f"Reason: {reason}" if reason else ""},
            actor_id=actor_id,
            cancelled_at=self.now_provider(),
            cancelled_by_id=actor_id,
            cancellation_reason=reason,
        )

    async def complete(self, session: MentoringSession) -> MentoringSession:
        return await self._transition(
            session,
            SessionStatusEnum.COMPLETED,
            NotificationTypeEnum.SUMMARY,
            {"variant": "completed"},
            completed_at=self.now_provider(),
        )

    async def _transition(
        self,
        session: MentoringSession,
        target: SessionStatusEnum,
        notification_type: NotificationTypeEnum,
        template_params: dict[str, Any],
        *,
        actor_id: UUID | None = None,
        **changes: Any,
    ) -> MentoringSession:
        observed = session.status
        ensure_transition_allowed(observed, target)

        updated = await self.repository.transition_status(session.id, observed, target, **changes)
        if updated is None:
            # another writer committed first; the caller must reload, not retry
            raise IllegalTransitionException(
                f"Session {session.id} is no longer {observed}; reload before acting again",
            )

        SESSION_TRANSITIONS_TOTAL.labels(from_status=str(observed), to_status=str(target)).inc()
        logger.info("Session %s moved %s -> %s", updated.id, observed, target)

        template_params = {"start_at": format_start(updated), **template_params}
        await self._notify_safely(notification_type, updated, template_params, actor_id=actor_id)
        return updated

    async def _notify_safely(
        self,
        notification_type: NotificationTypeEnum,
        session: MentoringSession,
        template_params: dict[str, Any],
        *,
        actor_id: UUID | None = None,
    ) -> None:
        try:
            await self.dispatcher.notify_participants(
                notification_type,
                session,
                template_params,
                actor_id=actor_id,
            )
        except NotificationDeliveryException as exc:
            NOTIFICATION_DELIVERY_FAILURES_TOTAL.labels(type=str(notification_type)).inc()
            logger.warning("Notification for session %s not delivered: %s", session.id, exc.message)
