"""Achievement API endpoints: catalog, admin CRUD, per-user awards."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.achievements import service
from wordflow.achievements.criteria import parse_criterion
from wordflow.achievements.evaluator import evaluate_achievements
from wordflow.achievements.schemas import (
    AchievementListResponse,
    AchievementResponse,
    CreateAchievementRequest,
    EvaluateAchievementsResponse,
    UpdateAchievementRequest,
    UserAchievementListResponse,
    UserAchievementResponse,
)
from wordflow.auth.dependencies import get_current_user, require_admin
from wordflow.database import get_session
from wordflow.db.models import Achievement, User
from wordflow.exceptions import NotFoundError
from wordflow.redis_client import get_redis_or_none
from wordflow.users.service import get_user_by_id

router = APIRouter(prefix="/api/v1", tags=["Achievements"])


def _achievement_response(achievement: Achievement) -> AchievementResponse:
    criterion = parse_criterion(achievement.criteria)
    return AchievementResponse(
        id=achievement.id,
        name=achievement.name,
        description=achievement.description,
        badge=achievement.badge,
        criteria=achievement.criteria,
        criteria_text=criterion.describe() if criterion is not None else None,
        points=achievement.points,
    )


@router.get("/achievements", response_model=AchievementListResponse)
async def list_catalog(db: AsyncSession = Depends(get_session)) -> AchievementListResponse:
    """The full achievement catalog, highest value first."""
    achievements = await service.list_achievements(db)
    return AchievementListResponse(achievements=[_achievement_response(a) for a in achievements])


@router.post("/achievements", response_model=AchievementResponse, status_code=201)
async def create(
    body: CreateAchievementRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AchievementResponse:
    achievement = await service.create_achievement(
        db,
        name=body.name,
        description=body.description,
        badge=body.badge,
        criteria=body.criteria.model_dump(),
        points=body.points,
    )
    await db.commit()
    return _achievement_response(achievement)


@router.patch("/achievements/{achievement_id}", response_model=AchievementResponse)
async def update(
    achievement_id: int,
    body: UpdateAchievementRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AchievementResponse:
    changes = body.model_dump(exclude_unset=True, exclude={"criteria"})
    if body.criteria is not None:
        changes["criteria"] = body.criteria.model_dump()
    achievement = await service.update_achievement(db, achievement_id, **changes)
    await db.commit()
    return _achievement_response(achievement)


@router.delete("/achievements/{achievement_id}", status_code=200)
async def delete(
    achievement_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> dict:
    await service.delete_achievement(db, achievement_id)
    await db.commit()
    return {"detail": "Achievement deleted"}


@router.post("/achievements/evaluate", response_model=EvaluateAchievementsResponse)
async def evaluate_mine(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> EvaluateAchievementsResponse:
    """Re-run the evaluator for the caller. Awards nothing already held."""
    awarded = await evaluate_achievements(db, user.id, get_redis_or_none())
    await db.commit()
    return EvaluateAchievementsResponse(awarded=awarded)


@router.get("/users/{user_id}/achievements", response_model=UserAchievementListResponse)
async def list_for_user(user_id: int, db: AsyncSession = Depends(get_session)) -> UserAchievementListResponse:
    """Achievements a user has earned, newest first."""
    if await get_user_by_id(db, user_id) is None:
        raise NotFoundError("User not found")
    awards = await service.list_user_achievements(db, user_id)
    return UserAchievementListResponse(
        user_achievements=[
            UserAchievementResponse(
                id=ua.id,
                awarded_at=ua.awarded_at,
                achievement=_achievement_response(ua.achievement),
            )
            for ua in awards
        ]
    )
