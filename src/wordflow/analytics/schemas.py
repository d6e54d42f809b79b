"""Pydantic schemas for the article analytics endpoint."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel


class AnalyticsArticle(BaseModel):
    id: int
    title: str
    slug: str
    created_at: datetime
    published_at: datetime | None = None


class ViewMetrics(BaseModel):
    total: int
    unique: int


class ReadMetrics(BaseModel):
    total_reads: int
    completed_reads: int
    average_read_time: float
    completion_rate: float
    read_time_distribution: dict[str, int]


class ClapMetrics(BaseModel):
    total: int
    unique_clappers: int


class EngagementMetrics(BaseModel):
    comments: int
    claps: ClapMetrics
    bookmarks: int
    engagement_score: int


class TimeSeriesPoint(BaseModel):
    day: date
    views: int
    reads: int
    claps: int


class ArticleAnalyticsResponse(BaseModel):
    article: AnalyticsArticle
    views: ViewMetrics
    read_metrics: ReadMetrics
    engagement: EngagementMetrics
    referrals: dict[str, int]
    devices: dict[str, int]
    geography: dict[str, int]
    time_series: list[TimeSeriesPoint]
    # Daily views are lifetime views spread evenly, not measured per day
    views_estimated: bool = True
