"""Article CRUD, slugs, publishing and soft delete."""

from __future__ import annotations

import re
import secrets
import string
from datetime import datetime, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.articles.revision_service import apply_edit
from wordflow.db.models import ARTICLE_STATUSES, Article, ArticleAnalytics, OutboxEvent, User
from wordflow.events.outbox import ARTICLE_PUBLISHED, record_event
from wordflow.exceptions import InvalidOperationError, NotFoundError, PermissionDeniedError

logger = structlog.get_logger()

_SLUG_STRIP = re.compile(r"[^a-z0-9\s-]")
_SLUG_SPACE = re.compile(r"[\s_-]+")
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def slugify(title: str) -> str:
    """'Hello, World!' -> 'hello-world'."""
    slug = _SLUG_STRIP.sub("", title.lower().strip())
    slug = _SLUG_SPACE.sub("-", slug).strip("-")
    return slug or "article"


async def _unique_slug(db: AsyncSession, title: str, exclude_id: int | None = None) -> str:
    base = slugify(title)[:300]
    slug = base
    while True:
        query = select(Article.id).where(Article.slug == slug)
        if exclude_id is not None:
            query = query.where(Article.id != exclude_id)
        taken = (await db.execute(query)).first() is not None
        if not taken:
            return slug
        suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
        slug = f"{base}-{suffix}"


def _check_status(status: str) -> None:
    if status not in ARTICLE_STATUSES:
        raise InvalidOperationError(f"Invalid status: {status}. Must be one of {', '.join(ARTICLE_STATUSES)}")


async def create_article(
    db: AsyncSession,
    author: User,
    title: str,
    content: str,
    excerpt: str | None = None,
    cover_image: str | None = None,
    status: str = "PUBLISHED",
) -> tuple[Article, OutboxEvent | None]:
    """Create an article and its empty analytics row.

    Returns the article and the ``article.published`` event when it was
    published on creation. The caller commits and dispatches.
    """
    if not title.strip() or not content.strip():
        raise InvalidOperationError("Title and content are required")
    _check_status(status)

    now = datetime.now(timezone.utc)
    article = Article(
        author_id=author.id,
        title=title.strip(),
        content=content,
        excerpt=excerpt,
        cover_image=cover_image,
        slug=await _unique_slug(db, title),
        status=status,
        created_at=now,
        updated_at=now,
        published_at=now if status == "PUBLISHED" else None,
    )
    db.add(article)
    await db.flush()
    await db.refresh(article, ["author"])
    db.add(ArticleAnalytics(article_id=article.id, updated_at=now))

    event = None
    if status == "PUBLISHED":
        event = await record_event(db, ARTICLE_PUBLISHED, {"article_id": article.id, "author_id": author.id})
    await db.flush()
    logger.info("article_created", article_id=article.id, author_id=author.id, status=status)
    return article, event


async def get_article(db: AsyncSession, article_id: int) -> Article:
    result = await db.execute(
        select(Article).where(Article.id == article_id, Article.deleted_at.is_(None))
    )
    article = result.scalar_one_or_none()
    if article is None:
        raise NotFoundError("Article not found")
    return article


async def get_article_by_slug(db: AsyncSession, slug: str) -> Article:
    result = await db.execute(
        select(Article).where(Article.slug == slug, Article.deleted_at.is_(None))
    )
    article = result.scalar_one_or_none()
    if article is None:
        raise NotFoundError("Article not found")
    return article


async def get_owned_article(db: AsyncSession, actor: User, article_id: int) -> Article:
    """Fetch an article the actor authored; 403 for anyone else."""
    article = await get_article(db, article_id)
    if article.author_id != actor.id:
        raise PermissionDeniedError("Only the author can modify this article")
    return article


async def list_published_articles(
    db: AsyncSession,
    author_id: int | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Article], int]:
    """Published, non-deleted articles, newest first."""
    conditions = [Article.status == "PUBLISHED", Article.deleted_at.is_(None)]
    if author_id is not None:
        conditions.append(Article.author_id == author_id)
    return await _paginate(db, conditions, Article.published_at.desc(), page, per_page)


async def list_user_articles(
    db: AsyncSession,
    user: User,
    status: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Article], int]:
    """The user's own non-deleted articles in any status, most recently updated first."""
    conditions = [Article.author_id == user.id, Article.deleted_at.is_(None)]
    if status is not None:
        _check_status(status)
        conditions.append(Article.status == status)
    return await _paginate(db, conditions, Article.updated_at.desc(), page, per_page)


async def _paginate(db, conditions, order_by, page: int, per_page: int) -> tuple[list[Article], int]:
    total = (await db.execute(select(func.count()).select_from(Article).where(*conditions))).scalar_one()
    result = await db.execute(
        select(Article)
        .where(*conditions)
        .order_by(order_by, Article.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total


async def update_article(
    db: AsyncSession,
    actor: User,
    article_id: int,
    title: str | None = None,
    content: str | None = None,
    excerpt: str | None = None,
    cover_image: str | None = None,
    status: str | None = None,
    change_log: str | None = None,
) -> tuple[Article, OutboxEvent | None]:
    """Author-only update. Text edits go through the revision recorder first."""
    article = await get_owned_article(db, actor, article_id)

    if status is not None:
        _check_status(status)
    if title is not None and not title.strip():
        raise InvalidOperationError("Title must not be empty")
    if content is not None and not content.strip():
        raise InvalidOperationError("Content must not be empty")

    new_title = title.strip() if title is not None else article.title
    new_content = content if content is not None else article.content
    new_excerpt = excerpt if excerpt is not None else article.excerpt
    text_changed = (new_title, new_content, new_excerpt) != (article.title, article.content, article.excerpt)

    if new_title != article.title:
        article.slug = await _unique_slug(db, new_title, exclude_id=article.id)
    if text_changed:
        await apply_edit(
            db,
            article,
            title=new_title,
            content=new_content,
            excerpt=new_excerpt,
            change_log=change_log,
            editor_id=actor.id,
        )

    if cover_image is not None:
        article.cover_image = cover_image

    event = None
    if status is not None and status != article.status:
        if status == "PUBLISHED":
            article.published_at = datetime.now(timezone.utc)
            event = await record_event(db, ARTICLE_PUBLISHED, {"article_id": article.id, "author_id": actor.id})
        article.status = status

    article.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return article, event


async def delete_article(db: AsyncSession, actor: User, article_id: int) -> None:
    """Author-only soft delete."""
    article = await get_owned_article(db, actor, article_id)
    now = datetime.now(timezone.utc)
    article.deleted_at = now
    article.updated_at = now
    await db.flush()
    logger.info("article_deleted", article_id=article_id, author_id=actor.id)
