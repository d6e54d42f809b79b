"""Pydantic schemas for article and revision endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ArticleStatus = Literal["DRAFT", "PUBLISHED", "ARCHIVED"]


class AuthorResponse(BaseModel):
    id: int
    name: str | None = None
    image: str | None = None


class ArticleResponse(BaseModel):
    id: int
    title: str
    content: str
    excerpt: str | None = None
    slug: str
    status: str
    views: int
    cover_image: str | None = None
    author: AuthorResponse
    created_at: datetime
    updated_at: datetime
    published_at: datetime | None = None


class ArticleListResponse(BaseModel):
    articles: list[ArticleResponse]
    total: int
    page: int
    per_page: int


class CreateArticleRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=256)
    content: str = Field(..., min_length=1)
    excerpt: str | None = None
    cover_image: str | None = None
    status: ArticleStatus = "PUBLISHED"


class UpdateArticleRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=256)
    content: str | None = Field(None, min_length=1)
    excerpt: str | None = None
    cover_image: str | None = None
    status: ArticleStatus | None = None
    change_log: str | None = Field(None, max_length=500)


# --- Revisions ---


class RevisionResponse(BaseModel):
    id: int
    article_id: int
    version: int
    title: str
    content: str
    excerpt: str | None = None
    change_log: str | None = None
    created_by: int | None = None
    created_at: datetime


class RevisionListResponse(BaseModel):
    revisions: list[RevisionResponse]


class EditWithRevisionRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=256)
    content: str = Field(..., min_length=1)
    excerpt: str | None = None
    change_log: str | None = Field(None, max_length=500)


class RestoreRevisionRequest(BaseModel):
    revision_id: int


class RestoreRevisionResponse(BaseModel):
    article: ArticleResponse
    before: RevisionResponse
    after: RevisionResponse
