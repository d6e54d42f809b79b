"""Clap toggling. One row per (article, user); un-clapping soft-deletes it."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.articles.service import get_article
from wordflow.db.models import Clap, OutboxEvent, User
from wordflow.events.outbox import CLAP_CREATED, CLAP_REMOVED, record_event
from wordflow.exceptions import ConflictError, InvalidOperationError

MAX_CLAPS_PER_USER = 50


async def get_clap_total(db: AsyncSession, article_id: int) -> int:
    """Sum of counts over the article's active claps."""
    result = await db.execute(
        select(func.coalesce(func.sum(Clap.count), 0)).where(
            Clap.article_id == article_id, Clap.deleted_at.is_(None)
        )
    )
    return int(result.scalar_one())


async def has_clapped(db: AsyncSession, user_id: int, article_id: int) -> bool:
    result = await db.execute(
        select(Clap.id).where(
            Clap.article_id == article_id,
            Clap.user_id == user_id,
            Clap.deleted_at.is_(None),
        )
    )
    return result.first() is not None


async def toggle_clap(
    db: AsyncSession,
    user: User,
    article_id: int,
    count: int = 1,
) -> tuple[bool, int, OutboxEvent]:
    """Clap if the user has no active clap on the article, otherwise remove it.

    Returns ``(clapped, total, event)``. The caller commits and dispatches.
    """
    if not 1 <= count <= MAX_CLAPS_PER_USER:
        raise InvalidOperationError(f"Clap count must be between 1 and {MAX_CLAPS_PER_USER}")
    article = await get_article(db, article_id)

    result = await db.execute(
        select(Clap).where(Clap.article_id == article.id, Clap.user_id == user.id)
    )
    clap = result.scalar_one_or_none()
    now = datetime.now(timezone.utc)

    if clap is not None and clap.deleted_at is None:
        clap.deleted_at = now
        await db.flush()
        event = await record_event(
            db, CLAP_REMOVED, {"article_id": article.id, "user_id": user.id, "count": clap.count}
        )
        clapped = False
    else:
        if clap is None:
            clap = Clap(article_id=article.id, user_id=user.id, count=count, created_at=now)
            db.add(clap)
        else:
            # Revive the soft-deleted row
            clap.deleted_at = None
            clap.count = count
            clap.created_at = now
        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            raise ConflictError("Clap already recorded") from e
        event = await record_event(
            db, CLAP_CREATED, {"article_id": article.id, "user_id": user.id, "count": count}
        )
        clapped = True

    return clapped, await get_clap_total(db, article.id), event
