"""Outbox dispatch and the per-event side-effect handlers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.achievements.seed import seed_achievements
from wordflow.articles.service import create_article
from wordflow.db.models import Article, ArticleAnalytics, Notification, OutboxEvent, User
from wordflow.engagement.clap_service import get_clap_total, toggle_clap
from wordflow.engagement.comment_service import create_comment
from wordflow.engagement.read_service import record_read
from wordflow.events import handlers
from wordflow.events.outbox import (
    CLAP_CREATED,
    commit_and_dispatch,
    dispatch_event,
    dispatch_pending_events,
    record_event,
)
from wordflow.social.follow_service import follow


async def _scalar(db: AsyncSession, query):  # noqa: ANN001, ANN202
    return (await db.execute(query)).scalar_one()


async def _notifications(db: AsyncSession, user_id: int, type_: str | None = None) -> list[Notification]:
    query = select(Notification).where(Notification.user_id == user_id)
    if type_ is not None:
        query = query.where(Notification.type == type_)
    return list((await db.execute(query)).scalars())


async def _analytics(db: AsyncSession, article_id: int) -> ArticleAnalytics:
    result = await db.execute(
        select(ArticleAnalytics)
        .where(ArticleAnalytics.article_id == article_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _published(db: AsyncSession, author: User, title: str = "Story") -> Article:
    article, _ = await create_article(db, author, title, "Once upon a time")
    await db.commit()
    return article


class TestClapHandlers:
    @pytest.mark.asyncio
    async def test_clap_updates_counters_and_notifies_owner(self, db_session: AsyncSession, make_user):
        db = db_session
        author, reader = await make_user("Author"), await make_user("Reader")
        article = await _published(db, author)

        clapped, total, event = await toggle_clap(db, reader, article.id, count=3)
        await commit_and_dispatch(db, [event])

        assert (clapped, total) == (True, 3)
        assert (await _analytics(db, article.id)).total_claps == 3
        assert await _scalar(db, select(User.total_claps).where(User.id == author.id)) == 3
        [notification] = await _notifications(db, author.id, "CLAP")
        assert notification.message == 'Reader clapped for "Story"'
        assert notification.link == f"/article/{article.slug}"
        assert await _notifications(db, reader.id) == []

    @pytest.mark.asyncio
    async def test_self_clap_is_not_notified(self, db_session: AsyncSession, make_user):
        db = db_session
        author = await make_user()
        article = await _published(db, author)

        _, _, event = await toggle_clap(db, author, article.id)
        await commit_and_dispatch(db, [event])

        assert (await _analytics(db, article.id)).total_claps == 1
        assert await _notifications(db, author.id, "CLAP") == []

    @pytest.mark.asyncio
    async def test_toggling_twice_restores_original_count(self, db_session: AsyncSession, make_user):
        db = db_session
        author, reader = await make_user(), await make_user()
        article = await _published(db, author)

        for _ in range(2):
            _, _, event = await toggle_clap(db, reader, article.id)
            await commit_and_dispatch(db, [event])

        assert await get_clap_total(db, article.id) == 0
        assert (await _analytics(db, article.id)).total_claps == 0

    @pytest.mark.asyncio
    async def test_claps_received_unlock_achievement(self, db_session: AsyncSession, make_user):
        db = db_session
        await seed_achievements(db)
        author, reader = await make_user(), await make_user()
        article = await _published(db, author)

        _, _, event = await toggle_clap(db, reader, article.id, count=10)
        await commit_and_dispatch(db, [event])

        titles = {n.title for n in await _notifications(db, author.id, "ACHIEVEMENT")}
        assert 'Achievement Unlocked: "Applause"' in titles


class TestCommentHandlers:
    @pytest.mark.asyncio
    async def test_comment_notifies_author_and_counts(self, db_session: AsyncSession, make_user):
        db = db_session
        author, reader = await make_user(), await make_user()
        article = await _published(db, author)

        comment, event = await create_comment(db, reader, article.id, "Nice!")
        await commit_and_dispatch(db, [event])

        assert (await _analytics(db, article.id)).total_comments == 1
        [notification] = await _notifications(db, author.id, "COMMENT")
        assert notification.link.endswith(f"#comment-{comment.id}")

    @pytest.mark.asyncio
    async def test_author_reply_on_own_article_notifies_only_parent(self, db_session: AsyncSession, make_user):
        db = db_session
        author, reader = await make_user(), await make_user()
        article = await _published(db, author)

        parent, event = await create_comment(db, reader, article.id, "Question?")
        await commit_and_dispatch(db, [event])
        _, event = await create_comment(db, author, article.id, "Answer.", parent_id=parent.id)
        await commit_and_dispatch(db, [event])

        assert len(await _notifications(db, author.id, "COMMENT")) == 1  # from the reader only
        assert len(await _notifications(db, reader.id, "REPLY")) == 1

    @pytest.mark.asyncio
    async def test_third_party_reply_fires_both(self, db_session: AsyncSession, make_user):
        db = db_session
        author, first, second = await make_user(), await make_user(), await make_user()
        article = await _published(db, author)

        parent, event = await create_comment(db, first, article.id, "Hi")
        await commit_and_dispatch(db, [event])
        _, event = await create_comment(db, second, article.id, "Hello", parent_id=parent.id)
        await commit_and_dispatch(db, [event])

        assert len(await _notifications(db, author.id, "COMMENT")) == 2
        assert len(await _notifications(db, first.id, "REPLY")) == 1
        assert await _notifications(db, second.id) == []

    @pytest.mark.asyncio
    async def test_self_reply_is_not_notified(self, db_session: AsyncSession, make_user):
        db = db_session
        author, reader = await make_user(), await make_user()
        article = await _published(db, author)

        parent, event = await create_comment(db, reader, article.id, "One")
        await commit_and_dispatch(db, [event])
        _, event = await create_comment(db, reader, article.id, "Two", parent_id=parent.id)
        await commit_and_dispatch(db, [event])

        assert await _notifications(db, reader.id, "REPLY") == []


class TestReadHandlers:
    @pytest.mark.asyncio
    async def test_completed_read_counts_once(self, db_session: AsyncSession, make_user):
        db = db_session
        author, reader = await make_user(), await make_user()
        article = await _published(db, author)

        _, event = await record_read(db, reader, article.id, 120, 100, completed=True, device="mobile")
        await commit_and_dispatch(db, [event])
        _, event = await record_read(db, reader, article.id, 30, 100, completed=True, device="mobile")
        await commit_and_dispatch(db, [event])

        assert await _scalar(db, select(Article.views).where(Article.id == article.id)) == 2
        analytics = await _analytics(db, article.id)
        assert analytics.unique_views == 1
        assert analytics.total_reads == 1
        assert analytics.average_read_time == 120
        assert analytics.completion_rate == 1.0
        assert analytics.device_breakdown == {"mobile": 2}
        assert analytics.referral_sources == {"direct": 2}
        assert await _scalar(db, select(User.total_reads).where(User.id == reader.id)) == 1

    @pytest.mark.asyncio
    async def test_partial_read_is_not_a_completion(self, db_session: AsyncSession, make_user):
        db = db_session
        author, reader = await make_user(), await make_user()
        article = await _published(db, author)

        _, event = await record_read(db, reader, article.id, 10, 20)
        await commit_and_dispatch(db, [event])

        analytics = await _analytics(db, article.id)
        assert analytics.total_reads == 0
        assert analytics.completion_rate == 0.0


class TestFollowHandlers:
    @pytest.mark.asyncio
    async def test_follow_notifies_and_evaluates(self, db_session: AsyncSession, make_user):
        db = db_session
        await seed_achievements(db)
        follower, star = await make_user("Fan"), await make_user("Star")

        _, event = await follow(db, follower, star.id)
        await commit_and_dispatch(db, [event])

        [notification] = await _notifications(db, star.id, "FOLLOW")
        assert notification.message == "Fan started following you"
        assert len(await _notifications(db, star.id, "ACHIEVEMENT")) == 1


class TestDispatch:
    @pytest.mark.asyncio
    async def test_missing_article_is_noop(self, db_session: AsyncSession, make_user):
        db = db_session
        user = await make_user()
        event = await record_event(db, CLAP_CREATED, {"article_id": 424242, "user_id": user.id, "count": 1})
        await db.commit()

        assert await dispatch_event(event.id) is True
        assert await _scalar(db, select(func.count()).select_from(Notification)) == 0

    @pytest.mark.asyncio
    async def test_event_runs_at_most_once(self, db_session: AsyncSession, make_user):
        db = db_session
        author, reader = await make_user(), await make_user()
        article = await _published(db, author)

        _, _, event = await toggle_clap(db, reader, article.id)
        await commit_and_dispatch(db, [event])

        assert await dispatch_event(event.id) is False
        assert (await _analytics(db, article.id)).total_claps == 1

    @pytest.mark.asyncio
    async def test_failing_step_does_not_block_others(self, db_session: AsyncSession, make_user, monkeypatch):
        db = db_session
        author, reader = await make_user(), await make_user()
        article = await _published(db, author)

        async def broken(*args, **kwargs):  # noqa: ANN002, ANN003, ANN202
            raise RuntimeError("notification store down")

        monkeypatch.setattr(handlers, "create_notification", broken)
        clapped, _, event = await toggle_clap(db, reader, article.id)
        await commit_and_dispatch(db, [event])

        # Primary write and the other steps survive
        assert clapped is True
        assert await get_clap_total(db, article.id) == 1
        assert (await _analytics(db, article.id)).total_claps == 1
        assert await _scalar(db, select(User.total_claps).where(User.id == author.id)) == 1
        stored = (
            await db.execute(
                select(OutboxEvent).where(OutboxEvent.id == event.id).execution_options(populate_existing=True)
            )
        ).scalar_one()
        assert stored.dispatched_at is not None
        assert "clap_notification" in stored.last_error

    @pytest.mark.asyncio
    async def test_pending_events_are_recovered(self, db_session: AsyncSession, make_user):
        db = db_session
        author, reader = await make_user(), await make_user()
        article = await _published(db, author)

        # Committed but never dispatched, as if the process died after commit
        _, _, event = await toggle_clap(db, reader, article.id)
        await db.commit()
        await db.execute(
            update(OutboxEvent)
            .where(OutboxEvent.id == event.id)
            .values(created_at=datetime.now(timezone.utc) - timedelta(minutes=5))
        )
        await db.commit()

        assert await dispatch_pending_events(limit=10, grace_seconds=30) >= 1
        assert (await _analytics(db, article.id)).total_claps == 1
        assert await dispatch_pending_events(limit=10, grace_seconds=30) == 0
