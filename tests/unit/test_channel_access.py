"""Unit tests for the channel access predicate."""

from dataclasses import dataclass

import pytest

from offcast.channels.access import has_access


@dataclass
class Band:
    min_subscribers: int = 0
    max_subscribers: int | None = None
    provider_only: str | None = None


class TestBands:
    @pytest.mark.parametrize("count", [0, 1, 999_999_999])
    def test_open_channel_admits_everyone(self, count):
        assert has_access(Band(), count)

    def test_inclusive_bounds(self):
        band = Band(min_subscribers=1_000, max_subscribers=9_999)
        assert has_access(band, 1_000)
        assert has_access(band, 9_999)
        assert not has_access(band, 999)
        assert not has_access(band, 10_000)

    def test_strict_bands_do_not_overlap(self):
        lounges = [
            Band(100, 999),
            Band(1_000, 9_999),
            Band(10_000, 99_999),
            Band(100_000, 999_999),
            Band(1_000_000, None),
        ]
        for count in (150, 5_000, 50_000, 150_000, 2_000_000):
            assert sum(has_access(b, count) for b in lounges) == 1

    def test_below_every_lounge(self):
        assert not has_access(Band(100, 999), 99)


class TestProviderOnly:
    def test_requires_linked_provider(self):
        band = Band(provider_only="youtube")
        assert has_access(band, 0, ["youtube", "twitch"])
        assert not has_access(band, 500_000, ["twitch"])

    def test_unknown_providers_refused(self):
        assert not has_access(Band(provider_only="tiktok"), 10_000, None)
