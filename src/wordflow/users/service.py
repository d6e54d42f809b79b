"""User lookups and the aggregate counts used by achievements and dashboards."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.db.models import Article, Follow, User


@dataclass(frozen=True)
class UserCounts:
    """Current aggregate counts for one user."""

    article_count: int
    follower_count: int
    clap_count: int


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    email: str,
    name: str | None = None,
    role: str = "USER",
) -> User:
    """Insert a user row. Account provisioning normally happens in the login service."""
    user = User(email=email, name=name, role=role)
    db.add(user)
    await db.flush()
    return user


async def get_user_counts(db: AsyncSession, user: User) -> UserCounts:
    """Published article count, follower count, and lifetime claps received."""
    articles = await db.execute(
        select(func.count())
        .select_from(Article)
        .where(
            Article.author_id == user.id,
            Article.status == "PUBLISHED",
            Article.deleted_at.is_(None),
        )
    )
    followers = await db.execute(
        select(func.count()).select_from(Follow).where(Follow.following_id == user.id)
    )
    # Read the tally from the table; the handlers bump it with bulk UPDATEs
    claps = await db.execute(select(User.total_claps).where(User.id == user.id))
    return UserCounts(
        article_count=articles.scalar_one(),
        follower_count=followers.scalar_one(),
        clap_count=claps.scalar_one_or_none() or 0,
    )


async def update_profile(
    db: AsyncSession,
    user: User,
    name: str | None = None,
    bio: str | None = None,
    image: str | None = None,
) -> User:
    """Replace the profile settings.

    A blank name or image keeps the current value; a blank bio clears it.
    """
    if name is not None and name.strip():
        user.name = name.strip()
    if image:
        user.image = image
    user.bio = bio.strip() if bio and bio.strip() else None
    await db.flush()
    return user


def display_name(user: User) -> str:
    """Name shown in notification copy."""
    return user.name or user.email.split("@")[0]
