"""Display formatting shared by posts and comments."""

from __future__ import annotations

import math


def format_subscriber_count(count: int | None) -> str:
    """Render a subscriber count in Korean units.

    >>> format_subscriber_count(150000)
    '15만'
    >>> format_subscriber_count(5500)
    '5.5천'
    >>> format_subscriber_count(500)
    '500'
    """
    n = count or 0
    if n >= 10_000:
        return f"{math.floor(n / 10_000)}만"
    if n >= 1_000:
        return f"{math.floor(n / 100) / 10:.1f}천"
    return str(n)


def format_author_info(provider: str | None, nickname: str | None, subscriber_count: int | None) -> str:
    """Pipe-joined author badge: ``provider|nickname|formatted count``."""
    return "|".join([provider or "", nickname or "", format_subscriber_count(subscriber_count)])
