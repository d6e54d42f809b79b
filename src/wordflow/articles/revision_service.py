"""Revision recorder: append-only snapshots of an article's title, content and excerpt.

Versions are ``count(existing revisions) + 1``. UNIQUE(article_id, version)
rejects a concurrent writer that computed the same version, so versions are
never reused.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.db.models import Article, ArticleRevision, User
from wordflow.exceptions import ConflictError, NotFoundError, PermissionDeniedError

RESTORE_BEFORE_NOTE = "Auto-saved before restoration"


async def _next_version(db: AsyncSession, article_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(ArticleRevision).where(ArticleRevision.article_id == article_id)
    )
    return result.scalar_one() + 1


async def record_revision(
    db: AsyncSession,
    article: Article,
    change_log: str | None = None,
    created_by: int | None = None,
) -> ArticleRevision:
    """Snapshot the article's current title/content/excerpt as the next version."""
    revision = ArticleRevision(
        article_id=article.id,
        version=await _next_version(db, article.id),
        title=article.title,
        content=article.content,
        excerpt=article.excerpt,
        change_log=change_log,
        created_by=created_by,
        created_at=datetime.now(timezone.utc),
    )
    db.add(revision)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Article was modified concurrently, please retry") from e
    return revision


async def apply_edit(
    db: AsyncSession,
    article: Article,
    title: str,
    content: str,
    excerpt: str | None = None,
    change_log: str | None = None,
    editor_id: int | None = None,
) -> ArticleRevision:
    """Record the pre-edit state, then overwrite the article text."""
    revision = await record_revision(db, article, change_log=change_log, created_by=editor_id)
    article.title = title
    article.content = content
    article.excerpt = excerpt
    article.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return revision


async def restore_revision(
    db: AsyncSession,
    article: Article,
    revision_id: int,
    actor_id: int | None = None,
) -> tuple[ArticleRevision, ArticleRevision]:
    """Restore an earlier revision, bracketing the jump with two new revisions.

    1. Snapshot the current state ("Auto-saved before restoration")
    2. Overwrite title/content/excerpt with the target revision
    3. Snapshot the restored state ("Restored from revision N")
    """
    target = await get_revision(db, article, revision_id)

    before = await record_revision(db, article, change_log=RESTORE_BEFORE_NOTE, created_by=actor_id)

    article.title = target.title
    article.content = target.content
    article.excerpt = target.excerpt
    article.updated_at = datetime.now(timezone.utc)
    await db.flush()

    after = await record_revision(
        db, article, change_log=f"Restored from revision {target.version}", created_by=actor_id
    )
    return before, after


async def list_revisions(db: AsyncSession, article: Article) -> list[ArticleRevision]:
    result = await db.execute(
        select(ArticleRevision)
        .where(ArticleRevision.article_id == article.id)
        .order_by(ArticleRevision.version.desc())
    )
    return list(result.scalars().all())


async def get_revision(db: AsyncSession, article: Article, revision_id: int) -> ArticleRevision:
    result = await db.execute(
        select(ArticleRevision).where(
            ArticleRevision.id == revision_id,
            ArticleRevision.article_id == article.id,
        )
    )
    revision = result.scalar_one_or_none()
    if revision is None:
        raise NotFoundError("Revision not found")
    return revision


def check_history_access(article: Article, user: User) -> None:
    """Revision history is visible to the author and to admins."""
    if article.author_id != user.id and user.role != "ADMIN":
        raise PermissionDeniedError("Not allowed to view this article's history")
