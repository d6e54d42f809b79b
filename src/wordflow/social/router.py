"""Follow API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.auth.dependencies import get_current_user
from wordflow.database import get_session
from wordflow.db.models import User
from wordflow.events.outbox import commit_and_dispatch
from wordflow.social.follow_service import follow, get_follow_counts, is_following, unfollow
from wordflow.social.schemas import FollowingStatusResponse, FollowResponse

router = APIRouter(prefix="/api/v1", tags=["Social"])


@router.post("/users/{user_id}/follow", response_model=FollowResponse)
async def toggle_follow(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> FollowResponse:
    """Follow a user, or unfollow when already following."""
    following, event = await follow(db, user, user_id)
    await commit_and_dispatch(db, [event])
    counts = await get_follow_counts(db, user_id)
    return FollowResponse(following=following, followers=counts.followers)


@router.post("/users/{user_id}/unfollow", response_model=FollowResponse)
async def unfollow_user(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> FollowResponse:
    """Unfollow a user. 400 when not currently following."""
    await unfollow(db, user, user_id)
    await db.commit()
    counts = await get_follow_counts(db, user_id)
    return FollowResponse(following=False, followers=counts.followers)


@router.get("/users/{user_id}/following", response_model=FollowingStatusResponse)
async def following_status(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> FollowingStatusResponse:
    """Whether the caller follows the given user."""
    return FollowingStatusResponse(following=await is_following(db, user, user_id))
