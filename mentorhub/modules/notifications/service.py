"""Notification centre: reading and acknowledging notifications."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.database import get_db_session
from mentorhub.modules.identity.models import User
from mentorhub.modules.notifications.models import Notification
from mentorhub.modules.notifications.repository import NotificationsRepository
from mentorhub.shared.exceptions import NotFoundException, UnauthorizedException


class NotificationsService:
    """Recipient-facing notification operations."""

    def __init__(self, repository: NotificationsRepository) -> None:
        self.repository = repository

    async def list_my_notifications(
        self,
        actor: User,
        unread_only: bool,
        limit: int,
        offset: int,
    ) -> tuple[list[Notification], int]:
        return await self.repository.list_notifications_for_user(actor.id, unread_only, limit, offset)

    async def unread_count(self, actor: User) -> int:
        return await self.repository.count_unread(actor.id)

    async def mark_read(self, notification_id: UUID, actor: User) -> Notification:
        """Mark one notification read; only its recipient may do so."""
        notification = await self.repository.get_notification_by_id(notification_id)
        if notification is None:
            raise NotFoundException("Notification not found")
        if notification.user_id != actor.id:
            raise UnauthorizedException("Only the recipient can update this notification")
        if notification.read:
            return notification
        return await self.repository.mark_read(notification)

    async def mark_all_read(self, actor: User) -> int:
        return await self.repository.mark_all_read(actor.id)


async def get_notifications_service(session: AsyncSession = Depends(get_db_session)) -> NotificationsService:
    """Dependency provider for notifications service."""
    return NotificationsService(NotificationsRepository(session))
