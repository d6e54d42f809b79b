"""Achievement criteria parsing and matching."""

from __future__ import annotations

import pytest

from wordflow.achievements.criteria import (
    ArticleCountCriterion,
    ClapCountCriterion,
    FollowerCountCriterion,
    parse_criterion,
)
from wordflow.users.service import UserCounts


class TestParseCriterion:
    @pytest.mark.parametrize(
        ("raw", "cls"),
        [
            ({"type": "ARTICLE_COUNT", "count": 1}, ArticleCountCriterion),
            ({"type": "FOLLOWER_COUNT", "count": 10}, FollowerCountCriterion),
            ('{"type": "CLAP_COUNT", "count": 100}', ClapCountCriterion),
        ],
    )
    def test_known_types(self, raw, cls):
        assert isinstance(parse_criterion(raw), cls)

    @pytest.mark.parametrize(
        "raw",
        [
            {"type": "READ_COUNT", "count": 1},
            {"type": "ARTICLE_COUNT"},
            {"type": "ARTICLE_COUNT", "count": -1},
            {"count": 3},
            "{broken",
            None,
        ],
    )
    def test_unknown_or_malformed_is_none(self, raw):
        assert parse_criterion(raw) is None


class TestIsMet:
    counts = UserCounts(article_count=3, follower_count=0, clap_count=10)

    def test_threshold_is_inclusive(self):
        assert parse_criterion({"type": "ARTICLE_COUNT", "count": 3}).is_met(self.counts)
        assert not parse_criterion({"type": "ARTICLE_COUNT", "count": 4}).is_met(self.counts)

    def test_each_type_reads_its_own_counter(self):
        assert not parse_criterion({"type": "FOLLOWER_COUNT", "count": 1}).is_met(self.counts)
        assert parse_criterion({"type": "CLAP_COUNT", "count": 10}).is_met(self.counts)

    def test_describe(self):
        assert parse_criterion({"type": "FOLLOWER_COUNT", "count": 1}).describe() == "Gain 1 follower"
        assert parse_criterion({"type": "CLAP_COUNT", "count": 5}).describe() == "Receive 5 claps"
