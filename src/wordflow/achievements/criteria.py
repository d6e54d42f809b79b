"""Achievement criteria: a closed tagged union keyed on ``type``.

Stored payloads look like ``{"type": "ARTICLE_COUNT", "count": 5}``.
"""

from __future__ import annotations

import json
import logging
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from wordflow.users.service import UserCounts

logger = logging.getLogger(__name__)


class ArticleCountCriterion(BaseModel):
    type: Literal["ARTICLE_COUNT"]
    count: int = Field(..., ge=0)

    def is_met(self, counts: UserCounts) -> bool:
        return counts.article_count >= self.count

    def describe(self) -> str:
        return f"Publish {self.count} article{'s' if self.count != 1 else ''}"


class FollowerCountCriterion(BaseModel):
    type: Literal["FOLLOWER_COUNT"]
    count: int = Field(..., ge=0)

    def is_met(self, counts: UserCounts) -> bool:
        return counts.follower_count >= self.count

    def describe(self) -> str:
        return f"Gain {self.count} follower{'s' if self.count != 1 else ''}"


class ClapCountCriterion(BaseModel):
    type: Literal["CLAP_COUNT"]
    count: int = Field(..., ge=0)

    def is_met(self, counts: UserCounts) -> bool:
        return counts.clap_count >= self.count

    def describe(self) -> str:
        return f"Receive {self.count} clap{'s' if self.count != 1 else ''}"


AchievementCriterion = Annotated[
    Union[ArticleCountCriterion, FollowerCountCriterion, ClapCountCriterion],
    Field(discriminator="type"),
]

criterion_adapter: TypeAdapter[AchievementCriterion] = TypeAdapter(AchievementCriterion)


def parse_criterion(raw: Any) -> AchievementCriterion | None:  # noqa: ANN401
    """Parse a stored criteria payload (dict or JSON string).

    Returns None for unknown types or malformed payloads; such achievements
    are never satisfied.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Achievement criteria is not valid JSON: %r", raw)
            return None
    try:
        return criterion_adapter.validate_python(raw)
    except ValidationError:
        logger.warning("Unsupported achievement criteria: %r", raw)
        return None
