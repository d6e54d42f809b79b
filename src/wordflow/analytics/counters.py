"""Write side of ArticleAnalytics: the denormalized per-article row.

Every counter change is a single ``UPDATE ... SET col = col + n`` so
concurrent handlers never lose increments.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.db.models import ArticleAnalytics, ReadHistory

COUNTER_COLUMNS = ("total_claps", "total_comments", "total_reads")


async def get_or_create_analytics(db: AsyncSession, article_id: int) -> ArticleAnalytics:
    """Return the analytics row, inserting an empty one if it is missing."""
    result = await db.execute(
        select(ArticleAnalytics)
        .where(ArticleAnalytics.article_id == article_id)
        .execution_options(populate_existing=True)
    )
    row = result.scalar_one_or_none()
    if row is not None:
        return row

    # Normally created with the article; this covers rows written before analytics existed
    row = ArticleAnalytics(article_id=article_id, updated_at=datetime.now(timezone.utc))
    db.add(row)
    await db.flush()
    return row


async def increment_counter(db: AsyncSession, article_id: int, column: str, amount: int = 1) -> None:
    """Atomically add ``amount`` to one counter. Negative amounts floor at zero."""
    if column not in COUNTER_COLUMNS:
        raise ValueError(f"Unknown analytics counter: {column}")
    await get_or_create_analytics(db, article_id)

    col = getattr(ArticleAnalytics, column)
    new_value = col + amount if amount >= 0 else case((col + amount < 0, 0), else_=col + amount)
    await db.execute(
        update(ArticleAnalytics)
        .where(ArticleAnalytics.article_id == article_id)
        .values({column: new_value, "updated_at": datetime.now(timezone.utc)})
        .execution_options(synchronize_session=False)
    )


def _bump(breakdown: dict[str, Any] | None, key: str) -> dict[str, int]:
    counts = Counter({k: int(v) for k, v in (breakdown or {}).items()})
    counts[key] += 1
    return dict(counts)


async def refresh_read_aggregates(
    db: AsyncSession,
    article_id: int,
    referrer: str | None = None,
    device: str | None = None,
    country: str | None = None,
) -> ArticleAnalytics:
    """Recompute the read-derived aggregates from read_history.

    unique_views is the number of distinct readers, average_read_time their
    mean read time in seconds, completion_rate the share of readers who
    finished (0..1). The breakdowns count one entry per recorded read.
    """
    row = await get_or_create_analytics(db, article_id)

    stats = await db.execute(
        select(
            func.count(ReadHistory.id),
            func.coalesce(func.avg(ReadHistory.read_time), 0),
            func.coalesce(func.sum(case((ReadHistory.completed.is_(True), 1), else_=0)), 0),
        ).where(ReadHistory.article_id == article_id)
    )
    readers, avg_time, completed = stats.one()
    readers = int(readers)

    row.unique_views = readers
    row.average_read_time = float(avg_time)
    row.completion_rate = (int(completed) / readers) if readers else 0.0
    row.referral_sources = _bump(row.referral_sources, referrer or "direct")
    row.device_breakdown = _bump(row.device_breakdown, device or "unknown")
    row.geographic_data = _bump(row.geographic_data, country or "unknown")
    row.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return row
