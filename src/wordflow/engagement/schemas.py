"""Pydantic schemas for claps, comments, bookmarks and reads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from wordflow.articles.schemas import ArticleResponse, AuthorResponse


# --- Claps ---


class ClapRequest(BaseModel):
    count: int = Field(1, ge=1, le=50)


class ClapResponse(BaseModel):
    clapped: bool
    total: int


class ClapTotalResponse(BaseModel):
    total: int
    has_clapped: bool = False


# --- Comments ---


class CreateCommentRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=10_000)
    parent_id: int | None = None


class CommentResponse(BaseModel):
    id: int
    article_id: int
    parent_id: int | None = None
    content: str
    author: AuthorResponse
    created_at: datetime


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
    total: int


# --- Bookmarks ---


class AddBookmarkRequest(BaseModel):
    article_id: int


class BookmarkResponse(BaseModel):
    id: int
    article_id: int
    settings: dict
    created_at: datetime
    article: ArticleResponse | None = None


class BookmarkListResponse(BaseModel):
    bookmarks: list[BookmarkResponse]


# --- Reads ---


class RecordReadRequest(BaseModel):
    read_time: int = Field(..., ge=0, description="Seconds spent reading")
    progress: float = Field(..., ge=0, le=100, description="Scroll progress in percent")
    completed: bool = False
    referrer: str | None = Field(None, max_length=256)
    device: str | None = Field(None, max_length=64)
    country: str | None = Field(None, max_length=64)


class ReadHistoryResponse(BaseModel):
    article_id: int
    read_time: int
    progress: float
    completed: bool
    updated_at: datetime
