"""Article analytics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.analytics.schemas import ArticleAnalyticsResponse
from wordflow.analytics.service import get_article_analytics
from wordflow.auth.dependencies import get_current_user
from wordflow.database import get_session
from wordflow.db.models import User

router = APIRouter(prefix="/api/v1", tags=["Analytics"])


@router.get("/articles/{article_id}/analytics", response_model=ArticleAnalyticsResponse)
async def article_analytics(
    article_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ArticleAnalyticsResponse:
    """Analytics snapshot for one article (author or admin)."""
    return await get_article_analytics(db, user, article_id)
