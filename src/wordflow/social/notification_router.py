"""Notification API endpoints, scoped to the caller."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.auth.dependencies import get_current_user
from wordflow.config import get_settings
from wordflow.database import get_session
from wordflow.db.models import User
from wordflow.social.notification_service import (
    delete_all_read,
    delete_notifications,
    get_notifications,
    get_unread_count,
    mark_all_as_read,
    mark_as_read,
)
from wordflow.social.schemas import (
    DeleteNotificationsRequest,
    MarkReadRequest,
    NotificationCountResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)

router = APIRouter(prefix="/api/v1", tags=["Notifications"])


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1),
    is_read: bool | None = Query(None),
    type: str | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> NotificationListResponse:
    """List the caller's notifications (paginated, newest first)."""
    per_page = min(per_page, get_settings().notifications_max_page_size)
    notifications, total = await get_notifications(db, user.id, page, per_page, is_read, type)
    return NotificationListResponse(
        notifications=[
            NotificationResponse(
                id=n.id,
                type=n.type,
                title=n.title,
                message=n.message,
                link=n.link,
                is_read=n.is_read,
                read_at=n.read_at,
                metadata=n.notification_metadata,
                created_at=n.created_at,
            )
            for n in notifications
        ],
        total=total,
        unread_count=await get_unread_count(db, user.id),
        page=page,
        per_page=per_page,
    )


@router.patch("/notifications", response_model=NotificationCountResponse)
async def mark_notifications_read(
    body: MarkReadRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> NotificationCountResponse:
    """Mark the listed notifications (or all unread ones) as read."""
    if body.mark_all:
        count = await mark_all_as_read(db, user.id)
    else:
        count = await mark_as_read(db, user.id, body.notification_ids or [])
    await db.commit()
    return NotificationCountResponse(count=count)


@router.delete("/notifications", response_model=NotificationCountResponse)
async def remove_notifications(
    body: DeleteNotificationsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> NotificationCountResponse:
    """Delete the listed notifications (or all read ones)."""
    if body.delete_all_read:
        count = await delete_all_read(db, user.id)
    else:
        count = await delete_notifications(db, user.id, body.notification_ids or [])
    await db.commit()
    return NotificationCountResponse(count=count)


@router.get("/notifications/unread-count", response_model=UnreadCountResponse)
async def get_unread_notification_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UnreadCountResponse:
    """Get unread notification count."""
    count = await get_unread_count(db, user.id)
    return UnreadCountResponse(unread_count=count)
