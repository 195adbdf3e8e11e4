"""Channel access predicate.

Lounges partition the subscriber range into non-overlapping bands: a creator
with 150,000 subscribers belongs to the 100K band only, not to every lower
one. Open channels (min 0, no max, no provider restriction) admit everyone.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol


class ChannelBounds(Protocol):
    min_subscribers: int
    max_subscribers: int | None
    provider_only: str | None


def has_access(
    channel: ChannelBounds,
    subscriber_count: int,
    user_providers: Iterable[str] | None = None,
) -> bool:
    """Whether a creator with ``subscriber_count`` may read and write in ``channel``.

    ``user_providers=None`` means the caller knows of no linked providers, so
    provider-restricted channels are refused.
    """
    if subscriber_count < channel.min_subscribers:
        return False
    if channel.max_subscribers is not None and subscriber_count > channel.max_subscribers:
        return False
    if channel.provider_only:
        return channel.provider_only in set(user_providers or ())
    return True
