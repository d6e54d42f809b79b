"""Default achievement catalog, installed on startup (idempotent)."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.db.models import Achievement

logger = logging.getLogger(__name__)

ACHIEVEMENT_SEED_DATA: list[dict] = [
    # Writing
    {
        "name": "First Words",
        "description": "Publish your first article",
        "badge": "/badges/first-words.svg",
        "criteria": {"type": "ARTICLE_COUNT", "count": 1},
        "points": 10,
    },
    {
        "name": "Storyteller",
        "description": "Publish 10 articles",
        "badge": "/badges/storyteller.svg",
        "criteria": {"type": "ARTICLE_COUNT", "count": 10},
        "points": 50,
    },
    {
        "name": "Prolific Author",
        "description": "Publish 50 articles",
        "badge": "/badges/prolific-author.svg",
        "criteria": {"type": "ARTICLE_COUNT", "count": 50},
        "points": 200,
    },
    # Audience
    {
        "name": "First Follower",
        "description": "Someone wants to read more of your work",
        "badge": "/badges/first-follower.svg",
        "criteria": {"type": "FOLLOWER_COUNT", "count": 1},
        "points": 10,
    },
    {
        "name": "Rising Voice",
        "description": "Gain 100 followers",
        "badge": "/badges/rising-voice.svg",
        "criteria": {"type": "FOLLOWER_COUNT", "count": 100},
        "points": 100,
    },
    # Appreciation
    {
        "name": "Applause",
        "description": "Receive 10 claps across your articles",
        "badge": "/badges/applause.svg",
        "criteria": {"type": "CLAP_COUNT", "count": 10},
        "points": 20,
    },
    {
        "name": "Standing Ovation",
        "description": "Receive 1,000 claps across your articles",
        "badge": "/badges/standing-ovation.svg",
        "criteria": {"type": "CLAP_COUNT", "count": 1000},
        "points": 250,
    },
]


async def seed_achievements(db: AsyncSession) -> int:
    """Insert any catalog entries missing by name. Returns the number inserted."""
    result = await db.execute(select(Achievement.name))
    existing = set(result.scalars())

    inserted = 0
    for data in ACHIEVEMENT_SEED_DATA:
        if data["name"] in existing:
            continue
        db.add(Achievement(**data))
        inserted += 1

    await db.commit()
    if inserted:
        logger.info("Seeded %d achievements", inserted)
    return inserted
