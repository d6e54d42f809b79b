"""Comments and replies."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.articles.service import get_article
from wordflow.db.models import Comment, OutboxEvent, User
from wordflow.events.outbox import COMMENT_CREATED, record_event
from wordflow.exceptions import InvalidOperationError


async def create_comment(
    db: AsyncSession,
    author: User,
    article_id: int,
    content: str,
    parent_id: int | None = None,
) -> tuple[Comment, OutboxEvent]:
    """Add a comment, or a reply when ``parent_id`` names a comment on the same article."""
    if not content.strip():
        raise InvalidOperationError("Comment content is required")
    article = await get_article(db, article_id)

    if parent_id is not None:
        result = await db.execute(select(Comment.article_id).where(Comment.id == parent_id))
        parent_article_id = result.scalar_one_or_none()
        if parent_article_id != article.id:
            raise InvalidOperationError("Parent comment not found on this article")

    comment = Comment(
        article_id=article.id,
        author_id=author.id,
        parent_id=parent_id,
        content=content.strip(),
        created_at=datetime.now(timezone.utc),
    )
    db.add(comment)
    await db.flush()
    await db.refresh(comment, ["author"])

    event = await record_event(
        db,
        COMMENT_CREATED,
        {
            "article_id": article.id,
            "comment_id": comment.id,
            "author_id": author.id,
            "parent_id": parent_id,
        },
    )
    return comment, event


async def list_comments(db: AsyncSession, article_id: int) -> list[Comment]:
    """All comments on an article, oldest first."""
    await get_article(db, article_id)
    result = await db.execute(
        select(Comment)
        .where(Comment.article_id == article_id)
        .order_by(Comment.created_at, Comment.id)
    )
    return list(result.scalars().all())
