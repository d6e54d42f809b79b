"""Analytics aggregator unit tests: buckets, engagement score, time series."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from wordflow.analytics.aggregator import (
    READ_TIME_BUCKETS,
    bucket_read_time,
    build_time_series,
    engagement_score,
    parse_breakdown,
    read_time_distribution,
)

TODAY = date(2026, 10, 19)


class TestReadTimeBuckets:
    """Half-open bins: a boundary value belongs to the higher bucket."""

    @pytest.mark.parametrize(
        ("seconds", "label"),
        [
            (0, "0-30s"),
            (29.9, "0-30s"),
            (30, "30s-1m"),
            (59, "30s-1m"),
            (60, "1m-3m"),
            (179, "1m-3m"),
            (180, "3m-5m"),
            (300, "5m-10m"),
            (599, "5m-10m"),
            (600, "10m+"),
            (86_400, "10m+"),
        ],
    )
    def test_bucket_boundaries(self, seconds, label):
        assert bucket_read_time(seconds) == label

    def test_distribution_has_every_bucket_in_order(self):
        dist = read_time_distribution([])
        assert list(dist) == [label for label, _ in READ_TIME_BUCKETS]
        assert all(v == 0 for v in dist.values())

    def test_distribution_counts(self):
        dist = read_time_distribution([5, 30, 30, 200, 600, 1200])
        assert dist == {
            "0-30s": 1,
            "30s-1m": 2,
            "1m-3m": 0,
            "3m-5m": 1,
            "5m-10m": 0,
            "10m+": 2,
        }


class TestEngagementScore:
    def test_reference_scenario_clamps_to_100(self):
        # 0.10*3 + 0.05*5 + 0.20*2 + 0.04*4 = 1.11 -> 111 -> 100
        assert engagement_score(views=100, reads=10, comments=5, claps=20, bookmarks=4) == 100

    def test_zero_views_is_zero(self):
        assert engagement_score(views=0, reads=10, comments=5, claps=20, bookmarks=4) == 0

    def test_weighted_rates(self):
        # 10 reads / 1000 views * 3 * 100 = 3
        assert engagement_score(views=1000, reads=10, comments=0, claps=0, bookmarks=0) == 3
        # (1*5 + 2*4) / 1000 * 100 = 1.3 -> 1
        assert engagement_score(views=1000, reads=0, comments=1, claps=0, bookmarks=2) == 1

    def test_rounds_half_up(self):
        # 1 clap * 2 / 400 views * 100 = 0.5
        assert engagement_score(views=400, reads=0, comments=0, claps=1, bookmarks=0) == 1

    @pytest.mark.parametrize("views", [1, 7, 100, 10_000])
    def test_always_within_bounds(self, views):
        for counts in [(0, 0, 0, 0), (1, 1, 1, 1), (50, 3, 900, 12), (10_000, 10_000, 10_000, 10_000)]:
            score = engagement_score(views, *counts)
            assert 0 <= score <= 100


class TestTimeSeries:
    def test_window_covers_start_through_today(self):
        series = build_time_series(0, None, [], [], today=TODAY, window_days=30)
        assert len(series) == 31
        assert series[0].day == TODAY - timedelta(days=30)
        assert series[-1].day == TODAY

    def test_unpublished_has_no_views(self):
        series = build_time_series(500, None, [], [], today=TODAY)
        assert all(p.views == 0 for p in series)

    def test_views_spread_from_publication(self):
        published = datetime(2026, 10, 10, 15, 0, tzinfo=timezone.utc)
        series = build_time_series(105, published, [], [], today=TODAY)
        by_day = {p.day: p.views for p in series}
        # 10 days from Oct 10 through Oct 19 inclusive, floor(105 / 10) each
        assert by_day[date(2026, 10, 9)] == 0
        assert by_day[date(2026, 10, 10)] == 10
        assert by_day[TODAY] == 10
        assert sum(by_day.values()) == 100

    def test_old_article_spreads_over_whole_window(self):
        published = datetime(2025, 1, 1, tzinfo=timezone.utc)
        series = build_time_series(62, published, [], [], today=TODAY)
        assert all(p.views == 2 for p in series)

    def test_reads_and_claps_are_exact_per_day(self):
        reads = [
            datetime(2026, 10, 18, 8, 0, tzinfo=timezone.utc),
            datetime(2026, 10, 18, 23, 59, tzinfo=timezone.utc),
            datetime(2026, 10, 19, 1, 0),  # naive, treated as UTC
            datetime(2026, 1, 1, tzinfo=timezone.utc),  # outside the window
        ]
        claps = [datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)]
        series = build_time_series(0, None, reads, claps, today=TODAY)
        by_day = {p.day: p for p in series}
        assert by_day[date(2026, 10, 18)].reads == 2
        assert by_day[TODAY].reads == 1
        assert by_day[date(2026, 10, 1)].claps == 1
        assert sum(p.reads for p in series) == 3


class TestParseBreakdown:
    def test_accepts_dict_and_json_string(self):
        assert parse_breakdown({"google": 3}, "referral") == {"google": 3}
        assert parse_breakdown('{"mobile": 2}', "device") == {"mobile": 2}

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", ["a"], {"a": "many"}, 42])
    def test_malformed_reads_as_empty(self, raw):
        assert parse_breakdown(raw, "geography") == {}

    def test_none_is_empty(self):
        assert parse_breakdown(None, "referral") == {}
