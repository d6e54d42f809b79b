"""Follow graph: follow toggling, unfollowing and counts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.db.models import Follow, OutboxEvent, User
from wordflow.events.outbox import FOLLOW_CREATED, record_event
from wordflow.exceptions import ConflictError, InvalidOperationError, NotFoundError
from wordflow.users.service import get_user_by_id


@dataclass(frozen=True)
class FollowCounts:
    followers: int
    following: int


async def _get_target(db: AsyncSession, actor: User, target_id: int) -> User:
    if target_id == actor.id:
        raise InvalidOperationError("You cannot follow yourself")
    target = await get_user_by_id(db, target_id)
    if target is None:
        raise NotFoundError("User not found")
    return target


async def _get_follow(db: AsyncSession, follower_id: int, following_id: int) -> Follow | None:
    result = await db.execute(
        select(Follow).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
    )
    return result.scalar_one_or_none()


async def follow(db: AsyncSession, actor: User, target_id: int) -> tuple[bool, OutboxEvent | None]:
    """Toggle: follow the target, or unfollow if already following.

    Returns ``(following, event)``; the event is set only for a new follow.
    """
    target = await _get_target(db, actor, target_id)
    existing = await _get_follow(db, actor.id, target.id)
    if existing is not None:
        await db.delete(existing)
        await db.flush()
        return False, None

    db.add(Follow(follower_id=actor.id, following_id=target.id, created_at=datetime.now(timezone.utc)))
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Already following this user") from e
    event = await record_event(db, FOLLOW_CREATED, {"follower_id": actor.id, "following_id": target.id})
    return True, event


async def unfollow(db: AsyncSession, actor: User, target_id: int) -> None:
    """Remove an existing follow. Not following the target is an error."""
    target = await _get_target(db, actor, target_id)
    existing = await _get_follow(db, actor.id, target.id)
    if existing is None:
        raise InvalidOperationError("Not following this user")
    await db.delete(existing)
    await db.flush()


async def is_following(db: AsyncSession, actor: User, target_id: int) -> bool:
    return await _get_follow(db, actor.id, target_id) is not None


async def get_follow_counts(db: AsyncSession, user_id: int) -> FollowCounts:
    followers = await db.execute(
        select(func.count()).select_from(Follow).where(Follow.following_id == user_id)
    )
    following = await db.execute(
        select(func.count()).select_from(Follow).where(Follow.follower_id == user_id)
    )
    return FollowCounts(followers=followers.scalar_one(), following=following.scalar_one())
