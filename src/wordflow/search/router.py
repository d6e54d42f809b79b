"""Search endpoint."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.articles.router import article_response
from wordflow.auth.dependencies import get_optional_user
from wordflow.database import get_session
from wordflow.db.models import User
from wordflow.search.schemas import SearchResponse, SearchResult
from wordflow.search.service import MAX_RESULTS, record_search, search_articles

router = APIRouter(prefix="/api/v1", tags=["Search"])


@router.get("/search", response_model=SearchResponse)
async def search(
    q: str = Query("", max_length=256),
    author: int | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    limit: int = Query(20, ge=1, le=MAX_RESULTS),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
) -> SearchResponse:
    """Search published articles. Signed-in callers get the search saved to their history."""
    hits = await search_articles(db, q, author_id=author, start_date=start_date, end_date=end_date, limit=limit)
    if user is not None:
        await record_search(
            db, user, q, len(hits), author_id=author, start_date=start_date, end_date=end_date
        )
        await db.commit()
    return SearchResponse(
        query=q,
        results=[
            SearchResult(article=article_response(h.article), comment_count=h.comment_count, clap_count=h.clap_count)
            for h in hits
        ],
        total=len(hits),
    )
