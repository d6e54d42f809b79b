"""Pydantic schemas for the user dashboard."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from wordflow.search.schemas import SearchHistoryEntry


class DashboardStats(BaseModel):
    article_count: int
    total_claps: int
    total_comments: int
    total_reads: int


class LifetimeTallies(BaseModel):
    claps_received: int
    articles_completed: int


class FollowCounts(BaseModel):
    followers: int
    following: int


class RecentRead(BaseModel):
    article_id: int
    title: str
    slug: str
    read_time: int
    progress: float
    completed: bool
    updated_at: datetime


class RecentBookmark(BaseModel):
    id: int
    article_id: int
    title: str
    slug: str
    created_at: datetime


class DailyCount(BaseModel):
    date: str
    count: int


class EngagementTrends(BaseModel):
    claps: list[DailyCount]
    reads: list[DailyCount]


class DashboardResponse(BaseModel):
    stats: DashboardStats
    lifetime: LifetimeTallies
    follow_counts: FollowCounts
    read_history: list[RecentRead]
    bookmarks: list[RecentBookmark]
    search_history: list[SearchHistoryEntry]
    engagement_trends: EngagementTrends
