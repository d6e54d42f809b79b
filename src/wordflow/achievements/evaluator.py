"""Achievement evaluator: awards every newly satisfied achievement exactly once."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.achievements.criteria import AchievementCriterion, parse_criterion
from wordflow.db.models import Achievement, User, UserAchievement
from wordflow.social.notification_service import create_notification
from wordflow.users.service import UserCounts, get_user_by_id, get_user_counts

logger = structlog.get_logger()


@dataclass(frozen=True)
class CatalogEntry:
    achievement: Achievement
    criterion: AchievementCriterion | None


class AchievementEvaluator:
    """Evaluates the achievement catalog against one user's aggregate counts."""

    def __init__(self, db: AsyncSession, redis: object | None = None) -> None:
        self.db = db
        self.redis = redis
        self._catalog: list[CatalogEntry] | None = None

    async def _load_catalog(self) -> list[CatalogEntry]:
        """Load all achievements and parse their criteria once per evaluator."""
        if self._catalog is None:
            result = await self.db.execute(select(Achievement).order_by(Achievement.id))
            self._catalog = [
                CatalogEntry(achievement=a, criterion=parse_criterion(a.criteria))
                for a in result.scalars()
            ]
        return self._catalog

    async def _held_ids(self, user_id: int) -> set[int]:
        result = await self.db.execute(
            select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
        )
        return set(result.scalars())

    async def evaluate(self, user_id: int) -> list[str]:
        """Award all satisfied, not-yet-held achievements.

        Returns the names of achievements awarded by this call (may be empty).
        A user that no longer exists is a no-op.
        """
        user = await get_user_by_id(self.db, user_id)
        if user is None:
            return []

        counts = await get_user_counts(self.db, user)
        catalog = await self._load_catalog()
        held = await self._held_ids(user_id)

        awarded: list[str] = []
        for entry in catalog:
            if entry.achievement.id in held:
                continue
            if not _is_satisfied(entry, counts):
                continue
            await self._award(user, entry.achievement)
            held.add(entry.achievement.id)
            awarded.append(entry.achievement.name)

        if awarded:
            logger.info("achievements_awarded", user_id=user_id, achievements=awarded)
        return awarded

    async def _award(self, user: User, achievement: Achievement) -> UserAchievement:
        """Insert the UserAchievement row and emit one ACHIEVEMENT notification."""
        user_achievement = UserAchievement(
            user_id=user.id,
            achievement_id=achievement.id,
            awarded_at=datetime.now(timezone.utc),
        )
        self.db.add(user_achievement)
        # UNIQUE(user_id, achievement_id) turns a concurrent double award into an IntegrityError
        await self.db.flush()

        await create_notification(
            self.db,
            user.id,
            "ACHIEVEMENT",
            title=f'Achievement Unlocked: "{achievement.name}"',
            message=f"+{achievement.points} points: {achievement.description}",
            link="/dashboard/achievements",
            metadata={
                "achievementId": achievement.id,
                "badge": achievement.badge,
                "points": achievement.points,
            },
            redis=self.redis,
        )
        return user_achievement


def _is_satisfied(entry: CatalogEntry, counts: UserCounts) -> bool:
    if entry.criterion is None:
        return False
    return entry.criterion.is_met(counts)


async def evaluate_achievements(db: AsyncSession, user_id: int, redis: object | None = None) -> list[str]:
    """Convenience wrapper around AchievementEvaluator.evaluate()."""
    return await AchievementEvaluator(db, redis).evaluate(user_id)
