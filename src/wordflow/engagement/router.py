"""Engagement API endpoints: claps, comments, reads, bookmarks."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.articles.router import article_response
from wordflow.articles.schemas import AuthorResponse
from wordflow.articles.service import get_article
from wordflow.auth.dependencies import get_current_user
from wordflow.database import get_session
from wordflow.db.models import Bookmark, Comment, User
from wordflow.engagement import bookmark_service
from wordflow.engagement.clap_service import get_clap_total, has_clapped, toggle_clap
from wordflow.engagement.comment_service import create_comment, list_comments
from wordflow.engagement.read_service import record_read
from wordflow.engagement.schemas import (
    AddBookmarkRequest,
    BookmarkListResponse,
    BookmarkResponse,
    ClapRequest,
    ClapResponse,
    ClapTotalResponse,
    CommentListResponse,
    CommentResponse,
    CreateCommentRequest,
    ReadHistoryResponse,
    RecordReadRequest,
)
from wordflow.events.outbox import commit_and_dispatch

router = APIRouter(prefix="/api/v1", tags=["Engagement"])


def _comment_response(comment: Comment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        article_id=comment.article_id,
        parent_id=comment.parent_id,
        content=comment.content,
        author=AuthorResponse(id=comment.author.id, name=comment.author.name, image=comment.author.image),
        created_at=comment.created_at,
    )


def _bookmark_response(bookmark: Bookmark) -> BookmarkResponse:
    return BookmarkResponse(
        id=bookmark.id,
        article_id=bookmark.article_id,
        settings=bookmark.settings,
        created_at=bookmark.created_at,
        article=article_response(bookmark.article),
    )


# --- Claps ---


@router.get("/articles/{article_id}/clap", response_model=ClapTotalResponse)
async def get_claps(
    article_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ClapTotalResponse:
    """Total active claps on an article and whether the caller has clapped."""
    await get_article(db, article_id)
    return ClapTotalResponse(
        total=await get_clap_total(db, article_id),
        has_clapped=await has_clapped(db, user.id, article_id),
    )


@router.post("/articles/{article_id}/clap", response_model=ClapResponse)
async def clap(
    article_id: int,
    body: ClapRequest | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ClapResponse:
    """Toggle the caller's clap on an article."""
    count = body.count if body is not None else 1
    clapped, total, event = await toggle_clap(db, user, article_id, count)
    await commit_and_dispatch(db, [event])
    return ClapResponse(clapped=clapped, total=total)


# --- Comments ---


@router.get("/articles/{article_id}/comments", response_model=CommentListResponse)
async def get_comments(article_id: int, db: AsyncSession = Depends(get_session)) -> CommentListResponse:
    comments = await list_comments(db, article_id)
    return CommentListResponse(comments=[_comment_response(c) for c in comments], total=len(comments))


@router.post("/articles/{article_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    article_id: int,
    body: CreateCommentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CommentResponse:
    """Comment on an article, or reply to a comment via parent_id."""
    comment, event = await create_comment(db, user, article_id, body.content, body.parent_id)
    await commit_and_dispatch(db, [event])
    return _comment_response(comment)


# --- Reads ---


@router.post("/articles/{article_id}/reads", response_model=ReadHistoryResponse)
async def track_read(
    article_id: int,
    body: RecordReadRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ReadHistoryResponse:
    """Record reading progress for the caller."""
    history, event = await record_read(
        db,
        user,
        article_id,
        read_time=body.read_time,
        progress=body.progress,
        completed=body.completed,
        referrer=body.referrer,
        device=body.device,
        country=body.country,
    )
    await commit_and_dispatch(db, [event])
    return ReadHistoryResponse(
        article_id=history.article_id,
        read_time=history.read_time,
        progress=history.progress,
        completed=history.completed,
        updated_at=history.updated_at,
    )


# --- Bookmarks ---


@router.get("/bookmarks", response_model=BookmarkListResponse)
async def get_bookmarks(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> BookmarkListResponse:
    bookmarks = await bookmark_service.list_bookmarks(db, user)
    return BookmarkListResponse(bookmarks=[_bookmark_response(b) for b in bookmarks])


@router.post("/bookmarks", response_model=BookmarkResponse, status_code=201)
async def add_bookmark(
    body: AddBookmarkRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> BookmarkResponse:
    bookmark = await bookmark_service.add_bookmark(db, user, body.article_id)
    await db.commit()
    return _bookmark_response(bookmark)


@router.delete("/bookmarks", status_code=200)
async def remove_bookmark_by_article(
    article_id: int = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    await bookmark_service.remove_bookmark_for_article(db, user, article_id)
    await db.commit()
    return {"detail": "Bookmark removed"}


@router.delete("/bookmarks/{bookmark_id}", status_code=200)
async def remove_bookmark(
    bookmark_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    await bookmark_service.remove_bookmark(db, user, bookmark_id)
    await db.commit()
    return {"detail": "Bookmark removed"}
