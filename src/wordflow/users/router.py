"""User profile router: /api/v1/users/me endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.auth.dependencies import get_current_user
from wordflow.database import get_session
from wordflow.db.models import User
from wordflow.users.schemas import ProfileSettingsRequest, UserResponse
from wordflow.users.service import update_profile

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        image=user.image,
        bio=user.bio,
        role=user.role,
        created_at=user.created_at,
    )


@router.get("/me", response_model=UserResponse)
async def get_profile(user: User = Depends(get_current_user)) -> UserResponse:
    """Get own profile."""
    return _user_response(user)


@router.put("/me/settings", response_model=UserResponse)
async def update_profile_settings(
    body: ProfileSettingsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Update name, bio and image. An omitted bio is cleared."""
    user = await update_profile(db, user, name=body.name, bio=body.bio, image=body.image)
    await db.commit()
    return _user_response(user)
