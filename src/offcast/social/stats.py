"""Platform statistics fetchers, read with a linked account's stored token.

Only YouTube, TikTok and Twitch expose statistics; the other providers are
login-only.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from offcast.auth.providers import OAuthError
from offcast.config import Settings
from offcast.db.models import Provider
from offcast.social.schemas import ProviderStats, TikTokStats, TwitchStats, YouTubeStats

StatsFetcher = Callable[[httpx.AsyncClient, Settings, str], Awaitable[ProviderStats]]


def _count(value: Any) -> int:  # noqa: ANN401
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


async def _get(client: httpx.AsyncClient, url: str, access_token: str, **kwargs: Any) -> dict[str, Any]:  # noqa: ANN401
    headers = {"Authorization": f"Bearer {access_token}", **kwargs.pop("headers", {})}
    resp = await client.get(url, headers=headers, **kwargs)
    resp.raise_for_status()
    data: dict[str, Any] = resp.json()
    return data


async def youtube_stats(client: httpx.AsyncClient, _settings: Settings, access_token: str) -> YouTubeStats:
    data = await _get(
        client,
        "https://www.googleapis.com/youtube/v3/channels",
        access_token,
        params={"part": "snippet,statistics", "mine": "true"},
    )
    items = data.get("items") or []
    if not items:
        msg = "YouTube channel not found"
        raise OAuthError(msg)
    channel = items[0]
    snippet = channel.get("snippet") or {}
    statistics = channel.get("statistics") or {}
    return YouTubeStats(
        subscriber_count=_count(statistics.get("subscriberCount")),
        video_count=_count(statistics.get("videoCount")),
        view_count=_count(statistics.get("viewCount")),
        channel_id=channel["id"],
        channel_title=snippet.get("title") or "",
        thumbnail_url=((snippet.get("thumbnails") or {}).get("default") or {}).get("url") or "",
    )


async def tiktok_stats(client: httpx.AsyncClient, _settings: Settings, access_token: str) -> TikTokStats:
    data = await _get(
        client,
        "https://open.tiktokapis.com/v2/user/info/",
        access_token,
        params={"fields": "open_id,display_name,avatar_url,follower_count,following_count,likes_count,video_count"},
    )
    user = (data.get("data") or {}).get("user")
    if not user:
        msg = "TikTok user not found"
        raise OAuthError(msg)
    return TikTokStats(
        follower_count=_count(user.get("follower_count")),
        following_count=_count(user.get("following_count")),
        likes_count=_count(user.get("likes_count")),
        video_count=_count(user.get("video_count")),
        display_name=user.get("display_name") or "",
        avatar_url=user.get("avatar_url") or "",
    )


async def twitch_stats(client: httpx.AsyncClient, settings: Settings, access_token: str) -> TwitchStats:
    data = await _get(
        client,
        "https://api.twitch.tv/helix/users",
        access_token,
        headers={"Client-Id": settings.twitch_client_id},
    )
    users = data.get("data") or []
    if not users:
        msg = "Twitch user not found"
        raise OAuthError(msg)
    user = users[0]
    return TwitchStats(
        view_count=_count(user.get("view_count")),
        login=user.get("login") or "",
        display_name=user.get("display_name") or "",
        profile_image=user.get("profile_image_url") or "",
        broadcaster_type=user.get("broadcaster_type") or "",
    )


STATS_FETCHERS: dict[Provider, StatsFetcher] = {
    Provider.YOUTUBE: youtube_stats,
    Provider.TIKTOK: tiktok_stats,
    Provider.TWITCH: twitch_stats,
}


async def fetch_stats(
    provider: Provider,
    settings: Settings,
    access_token: str,
    client: httpx.AsyncClient | None = None,
) -> ProviderStats:
    """Fetch one platform's statistics. Transport and HTTP errors surface as OAuthError."""
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=settings.oauth_http_timeout_seconds)
    try:
        return await STATS_FETCHERS[provider](http, settings, access_token)
    except httpx.HTTPError as exc:
        msg = f"Failed to fetch {provider.value} statistics"
        raise OAuthError(msg) from exc
    finally:
        if owns_client:
            await http.aclose()
