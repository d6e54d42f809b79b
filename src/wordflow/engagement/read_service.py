"""Read tracking: one ReadHistory row per (user, article)."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.articles.service import get_article
from wordflow.db.models import OutboxEvent, ReadHistory, User
from wordflow.events.outbox import READ_RECORDED, record_event
from wordflow.exceptions import ConflictError, InvalidOperationError


async def record_read(
    db: AsyncSession,
    user: User,
    article_id: int,
    read_time: int,
    progress: float,
    completed: bool = False,
    referrer: str | None = None,
    device: str | None = None,
    country: str | None = None,
) -> tuple[ReadHistory, OutboxEvent]:
    """Upsert the reader's progress on an article.

    read_time and progress only ever grow; completed is sticky. Reaching 100%
    progress counts as completing the article.
    """
    if read_time < 0 or not 0 <= progress <= 100:
        raise InvalidOperationError("read_time must be >= 0 and progress within 0..100")
    article = await get_article(db, article_id)
    completed = completed or progress >= 100
    now = datetime.now(timezone.utc)

    result = await db.execute(
        select(ReadHistory).where(ReadHistory.user_id == user.id, ReadHistory.article_id == article.id)
    )
    history = result.scalar_one_or_none()
    if history is None:
        history = ReadHistory(
            user_id=user.id,
            article_id=article.id,
            read_time=read_time,
            progress=progress,
            completed=completed,
            created_at=now,
            updated_at=now,
        )
        db.add(history)
        newly_completed = completed
    else:
        newly_completed = completed and not history.completed
        history.read_time = max(history.read_time, read_time)
        history.progress = max(history.progress, progress)
        history.completed = history.completed or completed
        history.updated_at = now

    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Read already being recorded, please retry") from e

    event = await record_event(
        db,
        READ_RECORDED,
        {
            "article_id": article.id,
            "user_id": user.id,
            "completed": newly_completed,
            "referrer": referrer,
            "device": device,
            "country": country,
        },
    )
    return history, event
