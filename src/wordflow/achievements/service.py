"""Achievement catalog management (admin) and per-user listings."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.db.models import Achievement, UserAchievement
from wordflow.exceptions import ConflictError, NotFoundError


async def list_achievements(db: AsyncSession) -> list[Achievement]:
    result = await db.execute(select(Achievement).order_by(Achievement.points.desc(), Achievement.id))
    return list(result.scalars().all())


async def list_user_achievements(db: AsyncSession, user_id: int) -> list[UserAchievement]:
    result = await db.execute(
        select(UserAchievement)
        .where(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.awarded_at.desc(), UserAchievement.id.desc())
    )
    return list(result.scalars().all())


async def get_achievement(db: AsyncSession, achievement_id: int) -> Achievement:
    result = await db.execute(select(Achievement).where(Achievement.id == achievement_id))
    achievement = result.scalar_one_or_none()
    if achievement is None:
        raise NotFoundError("Achievement not found")
    return achievement


async def create_achievement(
    db: AsyncSession,
    name: str,
    description: str,
    badge: str,
    criteria: dict,
    points: int = 0,
) -> Achievement:
    """Insert a catalog entry. ``criteria`` must already be validated."""
    achievement = Achievement(
        name=name,
        description=description,
        badge=badge,
        criteria=criteria,
        points=points,
    )
    db.add(achievement)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("An achievement with this name already exists") from e
    return achievement


async def update_achievement(db: AsyncSession, achievement_id: int, **changes: object) -> Achievement:
    """Apply the non-None fields of ``changes``."""
    achievement = await get_achievement(db, achievement_id)
    for field, value in changes.items():
        if value is not None:
            setattr(achievement, field, value)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("An achievement with this name already exists") from e
    return achievement


async def delete_achievement(db: AsyncSession, achievement_id: int) -> None:
    achievement = await get_achievement(db, achievement_id)
    await db.execute(delete(UserAchievement).where(UserAchievement.achievement_id == achievement_id))
    await db.delete(achievement)
    await db.flush()
