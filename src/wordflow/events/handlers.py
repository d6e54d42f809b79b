"""Side-effect handlers, one per mutation event type.

Each handler snapshots the ids and strings it needs up front, then runs its
side effects as independent steps. A step commits on success; on failure it
is rolled back and logged, and the remaining steps still run. A handler whose
article or user has since been deleted does nothing.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.achievements.evaluator import evaluate_achievements
from wordflow.analytics.counters import increment_counter, refresh_read_aggregates
from wordflow.db.models import Article, Comment, User
from wordflow.events import types
from wordflow.social.notification_service import create_notification
from wordflow.users.service import display_name, get_user_by_id

logger = structlog.get_logger()

Handler = Callable[["HandlerContext", dict[str, Any]], Awaitable[None]]


class HandlerContext:
    """Session, Redis client and failure log shared by the steps of one event."""

    def __init__(self, db: AsyncSession, redis: Any | None = None, event_id: int | None = None) -> None:
        self.db = db
        self.redis = redis
        self.event_id = event_id
        self.failures: list[str] = []

    async def step(self, name: str, fn: Callable[[], Awaitable[object]]) -> bool:
        """Run one side effect in its own transaction. Never raises."""
        try:
            await fn()
            await self.db.commit()
        except Exception as exc:
            await self.db.rollback()
            logger.warning(
                "side_effect_step_failed",
                step=name,
                event_id=self.event_id,
                error=str(exc),
                exc_info=True,
            )
            self.failures.append(f"{name}: {exc}")
            return False
        return True


@dataclass(frozen=True)
class ArticleRef:
    id: int
    author_id: int
    title: str
    slug: str


async def _load_article(db: AsyncSession, article_id: int) -> ArticleRef | None:
    result = await db.execute(
        select(Article.id, Article.author_id, Article.title, Article.slug).where(
            Article.id == article_id, Article.deleted_at.is_(None)
        )
    )
    row = result.one_or_none()
    if row is None:
        return None
    return ArticleRef(id=row.id, author_id=row.author_id, title=row.title, slug=row.slug)


async def _actor_name(db: AsyncSession, user_id: int) -> str:
    user = await get_user_by_id(db, user_id)
    return display_name(user) if user is not None else "Someone"


async def _increment_user(db: AsyncSession, user_id: int, column: str, amount: int = 1) -> None:
    col = getattr(User, column)
    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values({column: col + amount})
        .execution_options(synchronize_session=False)
    )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def handle_clap_created(ctx: HandlerContext, payload: dict[str, Any]) -> None:
    article = await _load_article(ctx.db, payload["article_id"])
    if article is None:
        return
    clapper_id = int(payload["user_id"])
    count = int(payload.get("count", 1))
    clapper_name = await _actor_name(ctx.db, clapper_id)

    await ctx.step("article_clap_total", lambda: increment_counter(ctx.db, article.id, "total_claps", count))
    # Lifetime claps received by the owner; feeds CLAP_COUNT achievements
    await ctx.step("owner_clap_tally", lambda: _increment_user(ctx.db, article.author_id, "total_claps", count))

    if article.author_id != clapper_id:
        await ctx.step(
            "clap_notification",
            lambda: create_notification(
                ctx.db,
                article.author_id,
                "CLAP",
                title="New clap on your article",
                message=f'{clapper_name} clapped for "{article.title}"',
                link=f"/article/{article.slug}",
                metadata={"articleId": article.id, "userId": clapper_id, "count": count},
                redis=ctx.redis,
            ),
        )

    await ctx.step("owner_achievements", lambda: evaluate_achievements(ctx.db, article.author_id, ctx.redis))


async def handle_clap_removed(ctx: HandlerContext, payload: dict[str, Any]) -> None:
    article = await _load_article(ctx.db, payload["article_id"])
    if article is None:
        return
    count = int(payload.get("count", 1))
    await ctx.step("article_clap_total", lambda: increment_counter(ctx.db, article.id, "total_claps", -count))


async def handle_comment_created(ctx: HandlerContext, payload: dict[str, Any]) -> None:
    article = await _load_article(ctx.db, payload["article_id"])
    if article is None:
        return
    comment_id = int(payload["comment_id"])
    commenter_id = int(payload["author_id"])
    commenter_name = await _actor_name(ctx.db, commenter_id)
    link = f"/article/{article.slug}#comment-{comment_id}"

    parent_author_id: int | None = None
    if payload.get("parent_id") is not None:
        result = await ctx.db.execute(select(Comment.author_id).where(Comment.id == payload["parent_id"]))
        parent_author_id = result.scalar_one_or_none()

    await ctx.step("article_comment_total", lambda: increment_counter(ctx.db, article.id, "total_comments"))

    if parent_author_id is not None and parent_author_id != commenter_id:
        await ctx.step(
            "reply_notification",
            lambda: create_notification(
                ctx.db,
                parent_author_id,
                "REPLY",
                title="New reply to your comment",
                message=f'{commenter_name} replied to your comment on "{article.title}"',
                link=link,
                metadata={"articleId": article.id, "commentId": comment_id, "userId": commenter_id},
                redis=ctx.redis,
            ),
        )

    if article.author_id != commenter_id:
        await ctx.step(
            "comment_notification",
            lambda: create_notification(
                ctx.db,
                article.author_id,
                "COMMENT",
                title="New comment on your article",
                message=f'{commenter_name} commented on "{article.title}"',
                link=link,
                metadata={"articleId": article.id, "commentId": comment_id, "userId": commenter_id},
                redis=ctx.redis,
            ),
        )


async def handle_read_recorded(ctx: HandlerContext, payload: dict[str, Any]) -> None:
    article = await _load_article(ctx.db, payload["article_id"])
    if article is None:
        return
    reader_id = int(payload["user_id"])

    async def bump_views() -> None:
        # Keep updated_at: a view is not an edit
        await ctx.db.execute(
            update(Article)
            .where(Article.id == article.id)
            .values(views=Article.views + 1, updated_at=Article.updated_at)
            .execution_options(synchronize_session=False)
        )

    await ctx.step("article_views", bump_views)
    await ctx.step(
        "read_aggregates",
        lambda: refresh_read_aggregates(
            ctx.db,
            article.id,
            referrer=payload.get("referrer"),
            device=payload.get("device"),
            country=payload.get("country"),
        ),
    )

    # Set only on the read that first crossed into completed
    if payload.get("completed"):
        await ctx.step("article_read_total", lambda: increment_counter(ctx.db, article.id, "total_reads"))
        await ctx.step("reader_read_tally", lambda: _increment_user(ctx.db, reader_id, "total_reads"))


async def handle_follow_created(ctx: HandlerContext, payload: dict[str, Any]) -> None:
    follower_id = int(payload["follower_id"])
    following_id = int(payload["following_id"])
    followed = await get_user_by_id(ctx.db, following_id)
    if followed is None:
        return
    follower_name = await _actor_name(ctx.db, follower_id)

    await ctx.step(
        "follow_notification",
        lambda: create_notification(
            ctx.db,
            following_id,
            "FOLLOW",
            title="New follower",
            message=f"{follower_name} started following you",
            link=f"/profile/{follower_id}",
            metadata={"userId": follower_id},
            redis=ctx.redis,
        ),
    )
    await ctx.step("followed_achievements", lambda: evaluate_achievements(ctx.db, following_id, ctx.redis))


async def handle_article_published(ctx: HandlerContext, payload: dict[str, Any]) -> None:
    article = await _load_article(ctx.db, payload["article_id"])
    if article is None:
        return
    await ctx.step("author_achievements", lambda: evaluate_achievements(ctx.db, article.author_id, ctx.redis))


HANDLERS: dict[str, Handler] = {
    types.CLAP_CREATED: handle_clap_created,
    types.CLAP_REMOVED: handle_clap_removed,
    types.COMMENT_CREATED: handle_comment_created,
    types.READ_RECORDED: handle_read_recorded,
    types.FOLLOW_CREATED: handle_follow_created,
    types.ARTICLE_PUBLISHED: handle_article_published,
}
