"""Unit tests for hashtag normalization, popularity scoring and paging helpers."""

from datetime import datetime, timedelta, timezone

from offcast.common.pagination import Page, clamp_limit, total_pages
from offcast.hashtags.service import normalize_hashtag, normalize_hashtags
from offcast.posts.service import popularity_score


class TestHashtagNormalization:
    def test_strips_hash_and_lowercases(self):
        assert normalize_hashtag("  #Gaming ") == "gaming"

    def test_dedupes_preserving_order(self):
        assert normalize_hashtags(["#B", "a", "b", "#A", ""]) == ["b", "a"]

    def test_drops_overlong(self):
        assert normalize_hashtags(["x" * 51, "ok"]) == ["ok"]

    def test_none(self):
        assert normalize_hashtags(None) == []


class TestPopularity:
    NOW = datetime(2026, 1, 1, 12, tzinfo=timezone.utc)

    def test_fresh_post_score(self):
        assert popularity_score(10, self.NOW, self.NOW) == 10 / 2**1.2

    def test_decays_with_age(self):
        fresh = popularity_score(10, self.NOW - timedelta(hours=1), self.NOW)
        stale = popularity_score(10, self.NOW - timedelta(hours=48), self.NOW)
        assert fresh > stale

    def test_naive_timestamps_are_utc(self):
        naive = (self.NOW - timedelta(hours=3)).replace(tzinfo=None)
        assert popularity_score(5, naive, self.NOW) == 5 / 5**1.2

    def test_no_likes_scores_zero(self):
        assert popularity_score(0, self.NOW, self.NOW) == 0


class TestPaging:
    def test_clamp_limit(self):
        assert clamp_limit(None) == 20
        assert clamp_limit(0) == 1
        assert clamp_limit(500) == 50

    def test_total_pages(self):
        assert total_pages(0, 20) == 0
        assert total_pages(41, 20) == 3

    def test_page_build(self):
        page = Page[int].build([1, 2], total=5, page=1, limit=2)
        assert page.total_pages == 3
        assert page.items == [1, 2]
