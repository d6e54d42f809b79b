"""Pure analytics computations: read-time histogram, engagement score, daily series.

Nothing here touches the database; ``analytics.service`` feeds these
functions with rows it has already loaded.
"""

from __future__ import annotations

import json
import logging
import math
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any

logger = logging.getLogger(__name__)

# (label, exclusive upper bound in seconds); a value on a boundary falls in the higher bucket
READ_TIME_BUCKETS: tuple[tuple[str, float], ...] = (
    ("0-30s", 30),
    ("30s-1m", 60),
    ("1m-3m", 180),
    ("3m-5m", 300),
    ("5m-10m", 600),
    ("10m+", math.inf),
)

ENGAGEMENT_WEIGHTS = {
    "reads": 3,
    "comments": 5,
    "claps": 2,
    "bookmarks": 4,
}


def bucket_read_time(seconds: float) -> str:
    """Label of the half-open bucket containing ``seconds``."""
    for label, upper in READ_TIME_BUCKETS:
        if seconds < upper:
            return label
    return READ_TIME_BUCKETS[-1][0]


def read_time_distribution(read_times: Iterable[float]) -> dict[str, int]:
    """Count read times per bucket. Every bucket is present, in order."""
    distribution = {label: 0 for label, _ in READ_TIME_BUCKETS}
    for seconds in read_times:
        distribution[bucket_read_time(seconds)] += 1
    return distribution


def engagement_score(views: int, reads: int, comments: int, claps: int, bookmarks: int) -> int:
    """Weighted per-view engagement, scaled to 0..100.

    Each count is divided by ``views``, weighted, summed and multiplied by
    100. The result is clamped to [0, 100] and rounded half up. No views
    means a score of 0.
    """
    if views <= 0:
        return 0
    weighted = (
        reads * ENGAGEMENT_WEIGHTS["reads"]
        + comments * ENGAGEMENT_WEIGHTS["comments"]
        + claps * ENGAGEMENT_WEIGHTS["claps"]
        + bookmarks * ENGAGEMENT_WEIGHTS["bookmarks"]
    ) / views
    scaled = min(100.0, max(0.0, weighted * 100))
    return int(math.floor(scaled + 0.5))


@dataclass(frozen=True)
class DailyPoint:
    """One calendar day of the series. ``views`` is an estimate, reads/claps are exact."""

    day: date
    views: int
    reads: int
    claps: int


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def build_time_series(
    total_views: int,
    published_at: datetime | None,
    read_times: Iterable[datetime],
    clap_times: Iterable[datetime],
    today: date,
    window_days: int = 30,
) -> list[DailyPoint]:
    """One point per day from ``today - window_days`` through ``today``.

    There is no per-day view log, so lifetime views are spread evenly
    (``floor(views / days)``) over the days from max(publish date, window
    start) through today. Unpublished articles get zero views. Reads and
    claps are counted per day from their timestamps.
    """
    start = today - timedelta(days=window_days)
    days = [start + timedelta(days=i) for i in range(window_days + 1)]

    views_per_day = 0
    distribution_start: date | None = None
    if published_at is not None:
        distribution_start = max(as_utc(published_at).date(), start)
        if distribution_start <= today:
            views_per_day = total_views // ((today - distribution_start).days + 1)

    reads = Counter(as_utc(t).date() for t in read_times)
    claps = Counter(as_utc(t).date() for t in clap_times)

    return [
        DailyPoint(
            day=d,
            views=views_per_day if distribution_start is not None and d >= distribution_start else 0,
            reads=reads.get(d, 0),
            claps=claps.get(d, 0),
        )
        for d in days
    ]


def parse_breakdown(raw: Any, name: str) -> dict[str, int]:  # noqa: ANN401
    """Validate a stored breakdown blob. Malformed blobs are logged and read as empty."""
    if raw is None:
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Malformed %s breakdown: %r", name, raw)
            return {}
    if not isinstance(raw, dict):
        logger.warning("Malformed %s breakdown: %r", name, raw)
        return {}
    try:
        return {str(k): int(v) for k, v in raw.items()}
    except (TypeError, ValueError):
        logger.warning("Malformed %s breakdown: %r", name, raw)
        return {}
