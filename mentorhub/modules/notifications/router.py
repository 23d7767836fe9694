"""Notifications API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from mentorhub.modules.identity.service import get_current_user
from mentorhub.modules.notifications.schemas import MarkAllReadResult, NotificationRead, UnreadCountRead
from mentorhub.modules.notifications.service import NotificationsService, get_notifications_service
from mentorhub.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/my", response_model=Page[NotificationRead])
async def list_my_notifications(
    unread_only: bool = Query(default=False),
    pagination=Depends(get_pagination_params),
    service: NotificationsService = Depends(get_notifications_service),
    current_user=Depends(get_current_user),
) -> Page[NotificationRead]:
    """List notifications for current user, newest first."""
    items, total = await service.list_my_notifications(
        current_user,
        unread_only,
        pagination.limit,
        pagination.offset,
    )
    serialized = [NotificationRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/my/unread-count", response_model=UnreadCountRead)
async def get_unread_count(
    service: NotificationsService = Depends(get_notifications_service),
    current_user=Depends(get_current_user),
) -> UnreadCountRead:
    return UnreadCountRead(unread=await service.unread_count(current_user))


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: UUID,
    service: NotificationsService = Depends(get_notifications_service),
    current_user=Depends(get_current_user),
) -> NotificationRead:
    notification = await service.mark_read(notification_id, current_user)
    return NotificationRead.model_validate(notification)


@router.post("/my/read-all", response_model=MarkAllReadResult)
async def mark_all_notifications_read(
    service: NotificationsService = Depends(get_notifications_service),
    current_user=Depends(get_current_user),
) -> MarkAllReadResult:
    return MarkAllReadResult(updated=await service.mark_all_read(current_user))
