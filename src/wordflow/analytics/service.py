"""Read-only analytics snapshot for one article.

Combines the stored ArticleAnalytics row with counts recomputed from raw
read, clap, comment and bookmark rows on every request. No writes, no cache.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.analytics.aggregator import (
    build_time_series,
    engagement_score,
    parse_breakdown,
    read_time_distribution,
)
from wordflow.analytics.schemas import (
    AnalyticsArticle,
    ArticleAnalyticsResponse,
    ClapMetrics,
    EngagementMetrics,
    ReadMetrics,
    TimeSeriesPoint,
    ViewMetrics,
)
from wordflow.articles.service import get_article
from wordflow.config import get_settings
from wordflow.db.models import ArticleAnalytics, Bookmark, Clap, Comment, ReadHistory, User
from wordflow.exceptions import PermissionDeniedError

logger = structlog.get_logger()


async def get_article_analytics(
    db: AsyncSession,
    actor: User,
    article_id: int,
    today: date | None = None,
) -> ArticleAnalyticsResponse:
    """Analytics for an article; visible to its author and to admins."""
    article = await get_article(db, article_id)
    if article.author_id != actor.id and actor.role != "ADMIN":
        raise PermissionDeniedError("Only the author or an admin can view analytics")

    today = today or datetime.now(timezone.utc).date()
    window_days = get_settings().analytics_window_days

    stored = (
        await db.execute(select(ArticleAnalytics).where(ArticleAnalytics.article_id == article.id))
    ).scalar_one_or_none()

    reads = (
        await db.execute(
            select(ReadHistory.read_time, ReadHistory.completed, ReadHistory.created_at).where(
                ReadHistory.article_id == article.id
            )
        )
    ).all()
    claps = (
        await db.execute(
            select(Clap.count, Clap.created_at).where(Clap.article_id == article.id, Clap.deleted_at.is_(None))
        )
    ).all()
    comment_count = (
        await db.execute(select(func.count()).select_from(Comment).where(Comment.article_id == article.id))
    ).scalar_one()
    bookmark_count = (
        await db.execute(
            select(func.count())
            .select_from(Bookmark)
            .where(Bookmark.article_id == article.id, Bookmark.deleted_at.is_(None))
        )
    ).scalar_one()

    total_claps = sum(c.count for c in claps)
    series = build_time_series(
        article.views,
        article.published_at,
        read_times=[r.created_at for r in reads],
        clap_times=[c.created_at for c in claps],
        today=today,
        window_days=window_days,
    )

    logger.debug("article_analytics_computed", article_id=article.id, reads=len(reads), claps=len(claps))
    return ArticleAnalyticsResponse(
        article=AnalyticsArticle(
            id=article.id,
            title=article.title,
            slug=article.slug,
            created_at=article.created_at,
            published_at=article.published_at,
        ),
        views=ViewMetrics(total=article.views, unique=stored.unique_views if stored else 0),
        read_metrics=ReadMetrics(
            total_reads=len(reads),
            completed_reads=sum(1 for r in reads if r.completed),
            average_read_time=stored.average_read_time if stored else 0.0,
            completion_rate=stored.completion_rate if stored else 0.0,
            read_time_distribution=read_time_distribution(r.read_time for r in reads),
        ),
        engagement=EngagementMetrics(
            comments=comment_count,
            claps=ClapMetrics(total=total_claps, unique_clappers=len(claps)),
            bookmarks=bookmark_count,
            engagement_score=engagement_score(
                article.views, len(reads), comment_count, total_claps, bookmark_count
            ),
        ),
        referrals=parse_breakdown(stored.referral_sources if stored else None, "referral"),
        devices=parse_breakdown(stored.device_breakdown if stored else None, "device"),
        geography=parse_breakdown(stored.geographic_data if stored else None, "geography"),
        time_series=[
            TimeSeriesPoint(day=p.day, views=p.views, reads=p.reads, claps=p.claps) for p in series
        ],
    )
