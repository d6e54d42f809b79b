"""Pydantic schemas for article search."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from wordflow.articles.schemas import ArticleResponse


class SearchResult(BaseModel):
    article: ArticleResponse
    comment_count: int
    clap_count: int


class SearchResponse(BaseModel):
    query: str
    results: list[SearchResult]
    total: int


class SearchHistoryEntry(BaseModel):
    id: int
    query: str
    filters: dict
    results: int
    created_at: datetime
