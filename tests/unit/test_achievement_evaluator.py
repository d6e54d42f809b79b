"""Achievement evaluator: awards once, skips unknown criteria, notifies with points."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.achievements.evaluator import evaluate_achievements
from wordflow.achievements.seed import ACHIEVEMENT_SEED_DATA, seed_achievements
from wordflow.articles.service import create_article
from wordflow.db.models import Achievement, Notification, User, UserAchievement


async def _count(db: AsyncSession, model, **filters) -> int:  # noqa: ANN001
    query = select(func.count()).select_from(model)
    for column, value in filters.items():
        query = query.where(getattr(model, column) == value)
    return (await db.execute(query)).scalar_one()


@pytest_asyncio.fixture
async def seeded_db(db_session: AsyncSession):
    await seed_achievements(db_session)
    return db_session


class TestSeed:
    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, db_session: AsyncSession):
        assert await seed_achievements(db_session) == len(ACHIEVEMENT_SEED_DATA)
        assert await seed_achievements(db_session) == 0
        assert await _count(db_session, Achievement) == len(ACHIEVEMENT_SEED_DATA)


class TestEvaluate:
    @pytest.mark.asyncio
    async def test_awards_first_article_once(self, seeded_db: AsyncSession, make_user):
        db = seeded_db
        author = await make_user()
        await create_article(db, author, "Hello", "World")
        await db.commit()

        awarded = await evaluate_achievements(db, author.id)
        await db.commit()
        assert awarded == ["First Words"]

        notification = (
            await db.execute(select(Notification).where(Notification.user_id == author.id))
        ).scalar_one()
        assert notification.type == "ACHIEVEMENT"
        assert notification.notification_metadata["points"] == 10

        # Second run awards and notifies nothing
        assert await evaluate_achievements(db, author.id) == []
        await db.commit()
        assert await _count(db, UserAchievement, user_id=author.id) == 1
        assert await _count(db, Notification, user_id=author.id) == 1

    @pytest.mark.asyncio
    async def test_drafts_do_not_count(self, seeded_db: AsyncSession, make_user):
        db = seeded_db
        author = await make_user()
        await create_article(db, author, "Draft", "Body", status="DRAFT")
        await db.commit()
        assert await evaluate_achievements(db, author.id) == []

    @pytest.mark.asyncio
    async def test_clap_tally_unlocks_clap_achievement(self, seeded_db: AsyncSession, make_user):
        db = seeded_db
        author = await make_user()
        await db.execute(update(User).where(User.id == author.id).values(total_claps=10))
        await db.commit()

        assert await evaluate_achievements(db, author.id) == ["Applause"]

    @pytest.mark.asyncio
    async def test_unknown_criterion_never_satisfied(self, db_session: AsyncSession, make_user):
        db = db_session
        db.add(Achievement(name="Bookworm", description="Read", badge="b", criteria={"type": "READ_COUNT", "count": 0}))
        db.add(Achievement(name="Broken", description="Bad", badge="b", criteria={"type": "ARTICLE_COUNT"}))
        await db.commit()
        user = await make_user()

        assert await evaluate_achievements(db, user.id) == []
        assert await _count(db, UserAchievement) == 0

    @pytest.mark.asyncio
    async def test_missing_user_is_noop(self, seeded_db: AsyncSession):
        assert await evaluate_achievements(seeded_db, 999_999) == []
