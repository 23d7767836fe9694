"""Notifications repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.enums import NotificationTypeEnum
from mentorhub.modules.notifications.models import Notification


class NotificationsRepository:
    """DB operations for notifications domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_notification(
        self,
        user_id: UUID,
        type: NotificationTypeEnum,
        title: str,
        message: str,
        related_session_id: UUID | None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            read=False,
            related_session_id=related_session_id,
        )
        # savepoint keeps a failed insert from aborting the caller's transaction
        async with self.session.begin_nested():
            self.session.add(notification)
        return notification

    async def get_notification_by_id(self, notification_id: UUID) -> Notification | None:
        stmt = select(Notification).where(Notification.id == notification_id)
        return await self.session.scalar(stmt)

    async def list_notifications_for_user(
        self,
        user_id: UUID,
        unread_only: bool,
        limit: int,
        offset: int,
    ) -> tuple[list[Notification], int]:
        base_stmt: Select[tuple[Notification]] = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            base_stmt = base_stmt.where(Notification.read.is_(False))
        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Notification.created_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return list(items), total

    async def count_unread(self, user_id: UUID) -> int:
        stmt = select(func.count()).where(Notification.user_id == user_id, Notification.read.is_(False))
        return int((await self.session.scalar(stmt)) or 0)

    async def mark_read(self, notification: Notification) -> Notification:
        notification.read = True
        await self.session.flush()
        return notification

    async def mark_all_read(self, user_id: UUID) -> int:
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)
