"""Notification dispatcher: one stored notification per triggering event.

Delivery is best effort and never retried here. Storage failures surface as
``NotificationDeliveryException`` so the caller can log them without undoing
the transition that triggered the notification.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from mentorhub.core.enums import NotificationTypeEnum
from mentorhub.modules.notifications.repository import NotificationsRepository
from mentorhub.shared.exceptions import NotificationDeliveryException, ValidationException

logger = logging.getLogger(__name__)

DEFAULT_VARIANT = "default"

TEMPLATES: dict[NotificationTypeEnum, dict[str, tuple[str, str]]] = {
    NotificationTypeEnum.REQUEST: {
        DEFAULT_VARIANT: ("New Session Request", "You have a new session request for {start_at}."),
    },
    NotificationTypeEnum.CONFIRMATION: {
        DEFAULT_VARIANT: ("Session Confirmed", "Your session on {start_at} has been confirmed."),
    },
    NotificationTypeEnum.SUMMARY: {
        "declined": ("Session Declined", "Your session request for {start_at} was declined."),
        "completed": (
            "Session Summary Available",
            "Your session on {start_at} is complete. Notes and transcript are now available.",
        ),
    },
    NotificationTypeEnum.REMINDER: {
        DEFAULT_VARIANT: ("Upcoming Session Reminder", "You have an upcoming session at {start_at}."),
    },
    NotificationTypeEnum.FOLLOW_UP: {
        DEFAULT_VARIANT: ("New Follow-up Message", "{message}"),
    },
    NotificationTypeEnum.CANCELLATION: {
        DEFAULT_VARIANT: ("Session Cancelled", "Your session on {start_at} was cancelled. {reason}"),
    },
}


class SessionParticipants(Protocol):
    id: UUID
    mentor_id: UUID
    mentee_id: UUID


class _TemplateParams(dict):
    def __missing__(self, key: str) -> str:
        return ""


def render(type: NotificationTypeEnum, template_params: dict[str, Any]) -> tuple[str, str]:
    variants = TEMPLATES[type]
    variant = template_params.get("variant", DEFAULT_VARIANT)
    title, message = variants.get(variant) or next(iter(variants.values()))
    return title, message.format_map(_TemplateParams(template_params)).strip()


def recipients_for(
    type: NotificationTypeEnum,
    session: SessionParticipants,
    actor_id: UUID | None = None,
) -> list[UUID]:
    """Fixed type-to-recipient mapping."""
    if type in (NotificationTypeEnum.REQUEST, NotificationTypeEnum.FOLLOW_UP):
        return [session.mentor_id]
    if type in (NotificationTypeEnum.CONFIRMATION, NotificationTypeEnum.SUMMARY):
        return [session.mentee_id]
    if type == NotificationTypeEnum.REMINDER:
        return [session.mentor_id, session.mentee_id]
    if type == NotificationTypeEnum.CANCELLATION:
        if actor_id == session.mentor_id:
            return [session.mentee_id]
        if actor_id == session.mentee_id:
            return [session.mentor_id]
        raise ValidationException("Cancellation notice needs the cancelling participant")
    raise ValidationException(f"Unknown notification type: {type}")


class NotificationDispatcher:
    """Render and store notifications for session events."""

    def __init__(self, repository: NotificationsRepository) -> None:
        self.repository = repository

    async def notify(
        self,
        user_id: UUID,
        type: NotificationTypeEnum,
        related_session_id: UUID | None,
        template_params: dict[str, Any],
    ) -> UUID:
        title, message = render(type, template_params)
        try:
            notification = await self.repository.create_notification(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                related_session_id=related_session_id,
            )
        except SQLAlchemyError as exc:
            raise NotificationDeliveryException(
                f"Could not store {type} notification for user {user_id}",
            ) from exc
        logger.debug("Stored %s notification %s for user %s", type, notification.id, user_id)
        return notification.id

    async def notify_participants(
        self,
        type: NotificationTypeEnum,
        session: SessionParticipants,
        template_params: dict[str, Any],
        *,
        actor_id: UUID | None = None,
    ) -> list[UUID]:
        """Notify every recipient the mapping assigns to this type."""
        return [
            await self.notify(user_id, type, session.id, template_params)
            for user_id in recipients_for(type, session, actor_id)
        ]
