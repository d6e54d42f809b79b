"""Article search and per-user search history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.db.models import Article, Clap, Comment, SearchHistory, User
from wordflow.exceptions import InvalidOperationError

logger = structlog.get_logger()

MAX_RESULTS = 100
RECENT_SEARCHES = 10


@dataclass(frozen=True)
class SearchHit:
    article: Article
    comment_count: int
    clap_count: int


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def search_articles(
    db: AsyncSession,
    query: str = "",
    author_id: int | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = 20,
) -> list[SearchHit]:
    """Published articles whose title, content or author name contains ``query``.

    Matching is case-insensitive; an empty query matches every published
    article. The date range applies to creation time and only when both ends
    are given. Newest first.
    """
    if start_date is not None and end_date is not None and start_date > end_date:
        raise InvalidOperationError("start_date must not be after end_date")
    limit = max(1, min(limit, MAX_RESULTS))

    comment_count = (
        select(func.count(Comment.id)).where(Comment.article_id == Article.id).correlate(Article).scalar_subquery()
    )
    clap_count = (
        select(func.count(Clap.id))
        .where(Clap.article_id == Article.id, Clap.deleted_at.is_(None))
        .correlate(Article)
        .scalar_subquery()
    )

    stmt = (
        select(Article, comment_count, clap_count)
        .join(User, User.id == Article.author_id)
        .where(Article.status == "PUBLISHED", Article.deleted_at.is_(None))
    )
    text = query.strip()
    if text:
        pattern = _like_pattern(text)
        stmt = stmt.where(
            or_(
                Article.title.ilike(pattern, escape="\\"),
                Article.content.ilike(pattern, escape="\\"),
                User.name.ilike(pattern, escape="\\"),
            )
        )
    if author_id is not None:
        stmt = stmt.where(Article.author_id == author_id)
    if start_date is not None and end_date is not None:
        stmt = stmt.where(Article.created_at >= start_date, Article.created_at <= end_date)

    result = await db.execute(stmt.order_by(Article.created_at.desc(), Article.id.desc()).limit(limit))
    return [
        SearchHit(article=article, comment_count=comments, clap_count=claps)
        for article, comments, claps in result.unique().all()
    ]


async def record_search(
    db: AsyncSession,
    user: User,
    query: str,
    results: int,
    author_id: int | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> SearchHistory:
    """Store one search of a signed-in user with its filters and result count."""
    date_range = None
    if start_date is not None and end_date is not None:
        date_range = {"startDate": start_date.isoformat(), "endDate": end_date.isoformat()}
    entry = SearchHistory(
        user_id=user.id,
        query=query.strip()[:256],
        filters={"author": author_id, "dateRange": date_range},
        results=results,
        created_at=datetime.now(timezone.utc),
    )
    db.add(entry)
    await db.flush()
    logger.debug("search_recorded", user_id=user.id, results=results)
    return entry


async def list_recent_searches(db: AsyncSession, user_id: int, limit: int = RECENT_SEARCHES) -> list[SearchHistory]:
    result = await db.execute(
        select(SearchHistory)
        .where(SearchHistory.user_id == user_id)
        .order_by(SearchHistory.created_at.desc(), SearchHistory.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
