"""Bookmarks: idempotent upsert, soft delete."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.articles.service import get_article
from wordflow.db.models import Article, Bookmark, User
from wordflow.exceptions import ConflictError, NotFoundError, PermissionDeniedError


async def add_bookmark(db: AsyncSession, user: User, article_id: int) -> Bookmark:
    """Bookmark an article. Re-bookmarking revives the soft-deleted row."""
    article = await get_article(db, article_id)
    now = datetime.now(timezone.utc)
    settings = {"addedAt": now.isoformat(), "source": "manual"}

    result = await db.execute(
        select(Bookmark).where(Bookmark.user_id == user.id, Bookmark.article_id == article.id)
    )
    bookmark = result.scalar_one_or_none()
    if bookmark is None:
        bookmark = Bookmark(user_id=user.id, article_id=article.id, settings=settings, created_at=now)
        db.add(bookmark)
    elif bookmark.deleted_at is not None:
        bookmark.deleted_at = None
        bookmark.settings = settings
        bookmark.created_at = now

    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Bookmark already exists") from e
    await db.refresh(bookmark, ["article"])
    return bookmark


async def remove_bookmark(db: AsyncSession, user: User, bookmark_id: int) -> None:
    result = await db.execute(
        select(Bookmark).where(Bookmark.id == bookmark_id, Bookmark.deleted_at.is_(None))
    )
    bookmark = result.scalar_one_or_none()
    if bookmark is None:
        raise NotFoundError("Bookmark not found")
    if bookmark.user_id != user.id:
        raise PermissionDeniedError("Cannot remove another user's bookmark")
    bookmark.deleted_at = datetime.now(timezone.utc)
    await db.flush()


async def remove_bookmark_for_article(db: AsyncSession, user: User, article_id: int) -> None:
    result = await db.execute(
        select(Bookmark).where(
            Bookmark.user_id == user.id,
            Bookmark.article_id == article_id,
            Bookmark.deleted_at.is_(None),
        )
    )
    bookmark = result.scalar_one_or_none()
    if bookmark is None:
        raise NotFoundError("Bookmark not found")
    bookmark.deleted_at = datetime.now(timezone.utc)
    await db.flush()


async def list_bookmarks(db: AsyncSession, user: User, limit: int | None = None) -> list[Bookmark]:
    """Active bookmarks on non-deleted articles, newest first."""
    query = (
        select(Bookmark)
        .join(Article, Article.id == Bookmark.article_id)
        .where(
            Bookmark.user_id == user.id,
            Bookmark.deleted_at.is_(None),
            Article.deleted_at.is_(None),
        )
        .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().unique().all())
