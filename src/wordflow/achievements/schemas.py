"""Pydantic request/response models for achievement endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from wordflow.achievements.criteria import AchievementCriterion


class AchievementResponse(BaseModel):
    id: int
    name: str
    description: str
    badge: str
    criteria: dict
    criteria_text: str | None = None
    points: int


class AchievementListResponse(BaseModel):
    achievements: list[AchievementResponse]


class UserAchievementResponse(BaseModel):
    id: int
    awarded_at: datetime
    achievement: AchievementResponse


class UserAchievementListResponse(BaseModel):
    user_achievements: list[UserAchievementResponse]


class CreateAchievementRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: str = Field(..., min_length=1)
    badge: str = Field(..., min_length=1, max_length=256)
    criteria: AchievementCriterion
    points: int = Field(0, ge=0)


class UpdateAchievementRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    description: str | None = Field(None, min_length=1)
    badge: str | None = Field(None, min_length=1, max_length=256)
    criteria: AchievementCriterion | None = None
    points: int | None = Field(None, ge=0)


class EvaluateAchievementsResponse(BaseModel):
    awarded: list[str]
