"""User dashboard aggregation.

Totals across the user's published articles, follow counts, recent reading,
bookmarks and searches, and claps/reads per day over the analytics window.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.analytics.aggregator import as_utc
from wordflow.config import get_settings
from wordflow.db.models import Article, Clap, Comment, ReadHistory, User
from wordflow.engagement.bookmark_service import list_bookmarks
from wordflow.exceptions import NotFoundError, PermissionDeniedError
from wordflow.search.service import list_recent_searches
from wordflow.social.follow_service import get_follow_counts
from wordflow.users.service import get_user_by_id

logger = structlog.get_logger()

RECENT_LIMIT = 10


def _published_by(user_id: int) -> list:
    return [Article.author_id == user_id, Article.status == "PUBLISHED", Article.deleted_at.is_(None)]


async def _engagement_totals(db: AsyncSession, user_id: int) -> dict:
    claps = await db.execute(
        select(func.coalesce(func.sum(Clap.count), 0))
        .join(Article, Article.id == Clap.article_id)
        .where(*_published_by(user_id), Clap.deleted_at.is_(None))
    )
    comments = await db.execute(
        select(func.count(Comment.id)).join(Article, Article.id == Comment.article_id).where(*_published_by(user_id))
    )
    reads = await db.execute(
        select(func.count(ReadHistory.id))
        .join(Article, Article.id == ReadHistory.article_id)
        .where(*_published_by(user_id))
    )
    articles = await db.execute(select(func.count()).select_from(Article).where(*_published_by(user_id)))
    return {
        "article_count": articles.scalar_one(),
        "total_claps": int(claps.scalar_one()),
        "total_comments": comments.scalar_one(),
        "total_reads": reads.scalar_one(),
    }


async def _engagement_trends(db: AsyncSession, user_id: int, since: datetime) -> dict:
    """Claps (summed counts) and reads per day on the user's articles since ``since``."""
    clap_rows = await db.execute(
        select(Clap.created_at, Clap.count)
        .join(Article, Article.id == Clap.article_id)
        .where(Article.author_id == user_id, Clap.deleted_at.is_(None), Clap.created_at >= since)
    )
    read_rows = await db.execute(
        select(ReadHistory.created_at)
        .join(Article, Article.id == ReadHistory.article_id)
        .where(Article.author_id == user_id, ReadHistory.created_at >= since)
    )

    claps: Counter[str] = Counter()
    for created_at, count in clap_rows:
        claps[as_utc(created_at).date().isoformat()] += count
    reads = Counter(as_utc(created_at).date().isoformat() for (created_at,) in read_rows)

    return {
        "claps": [{"date": d, "count": n} for d, n in sorted(claps.items())],
        "reads": [{"date": d, "count": n} for d, n in sorted(reads.items())],
    }


async def get_user_dashboard(db: AsyncSession, actor: User, user_id: int) -> dict:
    """Dashboard data for ``user_id``. Only the user themselves may see it."""
    if actor.id != user_id:
        raise PermissionDeniedError("You can only view your own dashboard")
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")

    since = datetime.now(timezone.utc) - timedelta(days=get_settings().analytics_window_days)
    follow_counts = await get_follow_counts(db, user_id)

    history_result = await db.execute(
        select(ReadHistory)
        .join(Article, Article.id == ReadHistory.article_id)
        .where(ReadHistory.user_id == user_id, Article.deleted_at.is_(None))
        .order_by(ReadHistory.updated_at.desc(), ReadHistory.id.desc())
        .limit(RECENT_LIMIT)
    )
    bookmarks = await list_bookmarks(db, user, limit=RECENT_LIMIT)

    return {
        "stats": await _engagement_totals(db, user_id),
        "lifetime": {"claps_received": user.total_claps, "articles_completed": user.total_reads},
        "follow_counts": {"followers": follow_counts.followers, "following": follow_counts.following},
        "read_history": [
            {
                "article_id": h.article_id,
                "title": h.article.title,
                "slug": h.article.slug,
                "read_time": h.read_time,
                "progress": h.progress,
                "completed": h.completed,
                "updated_at": h.updated_at,
            }
            for h in history_result.scalars().unique()
        ],
        "bookmarks": [
            {
                "id": b.id,
                "article_id": b.article_id,
                "title": b.article.title,
                "slug": b.article.slug,
                "created_at": b.created_at,
            }
            for b in bookmarks
        ],
        "search_history": [
            {
                "id": s.id,
                "query": s.query,
                "filters": s.filters,
                "results": s.results,
                "created_at": s.created_at,
            }
            for s in await list_recent_searches(db, user_id)
        ],
        "engagement_trends": await _engagement_trends(db, user_id, since),
    }
