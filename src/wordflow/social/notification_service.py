"""Notification creation and delivery service.

Notifications are:
1. Persisted in the database
2. Pushed to the user via Redis pub/sub (``ws:user:{id}``) when Redis is configured

Self-notification suppression is the caller's job: the emitter writes exactly
one row per call and never deduplicates.

Types: CLAP, COMMENT, REPLY, FOLLOW, ACHIEVEMENT, SYSTEM
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.db.models import Notification
from wordflow.exceptions import InvalidOperationError, PermissionDeniedError

logger = logging.getLogger(__name__)

VALID_TYPES = {"CLAP", "COMMENT", "REPLY", "FOLLOW", "ACHIEVEMENT", "SYSTEM"}


async def create_notification(
    db: AsyncSession,
    user_id: int,
    type_: str,
    title: str,
    message: str,
    link: str | None = None,
    metadata: dict[str, Any] | None = None,
    redis: Any | None = None,
) -> Notification:
    """Create a notification and push it via Redis pub/sub."""
    if type_ not in VALID_TYPES:
        raise ValueError(f"Invalid notification type: {type_}. Must be one of {VALID_TYPES}")

    notification = Notification(
        user_id=user_id,
        type=type_,
        title=title,
        message=message,
        link=link,
        notification_metadata=metadata or {},
        created_at=datetime.now(timezone.utc),
    )
    db.add(notification)
    await db.flush()

    if redis is not None:
        ws_payload = {
            "event": "notification",
            "data": {
                "id": str(notification.id),
                "type": notification.type,
                "title": notification.title,
                "message": notification.message,
                "link": notification.link,
                "timestamp": notification.created_at.isoformat(),
                "isRead": False,
            },
        }
        try:
            await redis.publish(f"ws:user:{user_id}", json.dumps(ws_payload))
        except Exception:
            logger.warning("Failed to push notification via Redis", exc_info=True)

    return notification


async def get_notifications(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 10,
    is_read: bool | None = None,
    type_: str | None = None,
) -> tuple[list[Notification], int]:
    """Get user's notifications (paginated, most recent first)."""
    conditions = [Notification.user_id == user_id]
    if is_read is not None:
        conditions.append(Notification.is_read.is_(is_read))
    if type_:
        conditions.append(Notification.type == type_)

    total_result = await db.execute(
        select(func.count()).select_from(Notification).where(*conditions)
    )
    total = total_result.scalar_one()

    result = await db.execute(
        select(Notification)
        .where(*conditions)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total


async def _ensure_owned(db: AsyncSession, user_id: int, notification_ids: Sequence[int]) -> list[int]:
    """Reject the whole request unless every id exists and belongs to the caller."""
    ids = sorted(set(notification_ids))
    if not ids:
        raise InvalidOperationError("notification_ids must not be empty")
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.id.in_(ids), Notification.user_id == user_id)
    )
    if result.scalar_one() != len(ids):
        raise PermissionDeniedError("Cannot modify notifications that do not belong to you")
    return ids


async def mark_as_read(db: AsyncSession, user_id: int, notification_ids: Sequence[int]) -> int:
    """Mark the given notifications as read. Returns count updated."""
    ids = await _ensure_owned(db, user_id, notification_ids)
    result = await db.execute(
        update(Notification)
        .where(
            Notification.id.in_(ids),
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )
        .values(is_read=True, read_at=datetime.now(timezone.utc))
    )
    await db.flush()
    return result.rowcount


async def mark_all_as_read(db: AsyncSession, user_id: int) -> int:
    """Mark all unread notifications as read. Returns count updated."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True, read_at=datetime.now(timezone.utc))
    )
    await db.flush()
    return result.rowcount


async def delete_notifications(db: AsyncSession, user_id: int, notification_ids: Sequence[int]) -> int:
    """Delete the given notifications. Returns count deleted."""
    ids = await _ensure_owned(db, user_id, notification_ids)
    result = await db.execute(
        delete(Notification).where(Notification.id.in_(ids), Notification.user_id == user_id)
    )
    await db.flush()
    return result.rowcount


async def delete_all_read(db: AsyncSession, user_id: int) -> int:
    """Delete every read notification of the user. Returns count deleted."""
    result = await db.execute(
        delete(Notification).where(Notification.user_id == user_id, Notification.is_read.is_(True))
    )
    await db.flush()
    return result.rowcount


async def get_unread_count(db: AsyncSession, user_id: int) -> int:
    """Get count of unread notifications."""
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
    )
    return result.scalar_one()
