"""OAuth provider registry.

Each supported platform is a static ``OAuthProviderConfig``: where to send the
user for consent, how to trade the returned code for tokens, and how to turn
an access token into an ``OAuthProfile`` (including the subscriber count used
for channel gating). Profile fetchers are shared with the social sync
endpoint, which re-reads counts with a stored token.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import urlencode

import httpx
import structlog

from offcast.config import Settings
from offcast.db.models import Provider
from offcast.users.service import OAuthProfile

logger = structlog.get_logger()


class OAuthError(Exception):
    """The provider refused the exchange or returned something unusable."""


@dataclass
class TokenSet:
    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def expires_at(self) -> datetime | None:
        if not self.expires_in:
            return None
        return datetime.now(timezone.utc) + timedelta(seconds=int(self.expires_in))


ProfileFetcher = Callable[[httpx.AsyncClient, Settings, TokenSet], Awaitable[OAuthProfile]]


@dataclass(frozen=True)
class OAuthProviderConfig:
    provider: Provider
    authorize_url: str
    token_url: str
    scopes: tuple[str, ...]
    fetch_profile: ProfileFetcher
    credentials: Callable[[Settings], tuple[str, str, str]]
    scope_separator: str = " "
    client_id_param: str = "client_id"
    extra_authorize_params: dict[str, str] = field(default_factory=dict)
    send_state_on_exchange: bool = False

    def is_configured(self, settings: Settings) -> bool:
        client_id, client_secret, _ = self.credentials(settings)
        return bool(client_id and client_secret)


def _int_or_none(value: Any) -> int | None:  # noqa: ANN401
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


async def _get_json(client: httpx.AsyncClient, url: str, **kwargs: Any) -> dict[str, Any]:  # noqa: ANN401
    resp = await client.get(url, **kwargs)
    resp.raise_for_status()
    data: dict[str, Any] = resp.json()
    return data


def _bearer(token: TokenSet) -> dict[str, str]:
    return {"Authorization": f"Bearer {token.access_token}"}


# ---------------------------------------------------------------------------
# Profile fetchers
# ---------------------------------------------------------------------------


async def _youtube_profile(client: httpx.AsyncClient, _settings: Settings, token: TokenSet) -> OAuthProfile:
    data = await _get_json(
        client,
        "https://www.googleapis.com/youtube/v3/channels",
        params={"part": "snippet,statistics", "mine": "true"},
        headers=_bearer(token),
    )
    items = data.get("items") or []
    if not items:
        msg = "No YouTube channel found for this Google account"
        raise OAuthError(msg)
    channel = items[0]
    snippet = channel.get("snippet", {})
    statistics = channel.get("statistics", {})
    return OAuthProfile(
        provider=Provider.YOUTUBE.value,
        provider_account_id=channel["id"],
        profile_name=snippet.get("title"),
        profile_image=snippet.get("thumbnails", {}).get("default", {}).get("url"),
        subscriber_count=_int_or_none(statistics.get("subscriberCount", 0)),
    )


async def _tiktok_profile(client: httpx.AsyncClient, _settings: Settings, token: TokenSet) -> OAuthProfile:
    data = await _get_json(
        client,
        "https://open.tiktokapis.com/v2/user/info/",
        params={"fields": "open_id,display_name,avatar_url,follower_count"},
        headers=_bearer(token),
    )
    user = (data.get("data") or {}).get("user")
    if not user or not user.get("open_id"):
        msg = "TikTok user not found"
        raise OAuthError(msg)
    return OAuthProfile(
        provider=Provider.TIKTOK.value,
        provider_account_id=user["open_id"],
        profile_name=user.get("display_name"),
        profile_image=user.get("avatar_url"),
        subscriber_count=_int_or_none(user.get("follower_count", 0)),
    )


async def _twitch_profile(client: httpx.AsyncClient, settings: Settings, token: TokenSet) -> OAuthProfile:
    headers = {**_bearer(token), "Client-Id": settings.twitch_client_id}
    data = await _get_json(client, "https://api.twitch.tv/helix/users", headers=headers)
    users = data.get("data") or []
    if not users:
        msg = "Twitch user not found"
        raise OAuthError(msg)
    user = users[0]

    followers: int | None = None
    try:
        follower_data = await _get_json(
            client,
            "https://api.twitch.tv/helix/channels/followers",
            params={"broadcaster_id": user["id"]},
            headers=headers,
        )
        followers = _int_or_none(follower_data.get("total"))
    except httpx.HTTPError as exc:
        logger.warning("twitch_follower_count_unavailable", error=str(exc))

    return OAuthProfile(
        provider=Provider.TWITCH.value,
        provider_account_id=user["id"],
        profile_name=user.get("display_name") or user.get("login"),
        profile_image=user.get("profile_image_url"),
        subscriber_count=followers,
    )


async def _soop_profile(client: httpx.AsyncClient, _settings: Settings, token: TokenSet) -> OAuthProfile:
    data = await _get_json(client, "https://openapi.sooplive.co.kr/v1/me", headers=_bearer(token))
    account_id = data.get("user_id") or data.get("id")
    if not account_id:
        msg = "SOOP user not found"
        raise OAuthError(msg)

    fans: int | None = None
    try:
        stats = await _get_json(client, "https://openapi.sooplive.co.kr/v1/me/stats", headers=_bearer(token))
        fans = _int_or_none(stats.get("fan_count") or stats.get("follower_count") or 0)
    except httpx.HTTPError as exc:
        logger.warning("soop_fan_count_unavailable", error=str(exc))

    return OAuthProfile(
        provider=Provider.SOOP.value,
        provider_account_id=str(account_id),
        profile_name=data.get("nickname") or data.get("user_nick"),
        profile_image=data.get("profile_image"),
        subscriber_count=fans,
    )


async def _instagram_profile(client: httpx.AsyncClient, _settings: Settings, token: TokenSet) -> OAuthProfile:
    graph = "https://graph.facebook.com/v18.0"
    params = {"access_token": token.access_token}
    pages = await _get_json(client, f"{graph}/me/accounts", params=params)

    business_id: str | None = None
    for page in pages.get("data") or []:
        page_data = await _get_json(
            client, f"{graph}/{page['id']}", params={**params, "fields": "instagram_business_account"}
        )
        if page_data.get("instagram_business_account"):
            business_id = page_data["instagram_business_account"]["id"]
            break
    if business_id is None:
        msg = "Instagram business account not found"
        raise OAuthError(msg)

    ig = await _get_json(
        client,
        f"{graph}/{business_id}",
        params={**params, "fields": "id,username,profile_picture_url,followers_count"},
    )
    return OAuthProfile(
        provider=Provider.INSTAGRAM.value,
        provider_account_id=ig.get("id", business_id),
        profile_name=ig.get("username"),
        profile_image=ig.get("profile_picture_url"),
        subscriber_count=_int_or_none(ig.get("followers_count", 0)),
    )


async def _chzzk_profile(client: httpx.AsyncClient, _settings: Settings, token: TokenSet) -> OAuthProfile:
    try:
        data = await _get_json(client, "https://api.chzzk.naver.com/service/v1/users/me", headers=_bearer(token))
        content = data.get("content") or {}
        channel_id = content.get("userIdHash") or content.get("channelId")
    except httpx.HTTPError as exc:
        logger.warning("chzzk_profile_unavailable", error=str(exc))
        content, channel_id = {}, None

    if channel_id:
        followers: int | None = None
        try:
            channel = await _get_json(
                client, f"https://api.chzzk.naver.com/service/v1/channels/{channel_id}", headers=_bearer(token)
            )
            followers = _int_or_none((channel.get("content") or {}).get("followerCount", 0))
        except httpx.HTTPError as exc:
            logger.warning("chzzk_follower_count_unavailable", error=str(exc))
        return OAuthProfile(
            provider=Provider.CHZZK.value,
            provider_account_id=channel_id,
            profile_name=content.get("nickname"),
            profile_image=content.get("profileImageUrl"),
            subscriber_count=followers,
        )

    # Fall back to the Naver account profile
    naver = await _get_json(client, "https://openapi.naver.com/v1/nid/me", headers=_bearer(token))
    user = naver.get("response") or {}
    if not user.get("id"):
        msg = "Naver user not found"
        raise OAuthError(msg)
    return OAuthProfile(
        provider=Provider.CHZZK.value,
        provider_account_id=user["id"],
        profile_name=user.get("nickname") or user.get("name"),
        profile_image=user.get("profile_image"),
        subscriber_count=0,
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

PROVIDERS: dict[Provider, OAuthProviderConfig] = {
    Provider.YOUTUBE: OAuthProviderConfig(
        provider=Provider.YOUTUBE,
        authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        scopes=(
            "https://www.googleapis.com/auth/youtube.readonly",
            "https://www.googleapis.com/auth/userinfo.profile",
        ),
        fetch_profile=_youtube_profile,
        credentials=lambda s: (s.google_client_id, s.google_client_secret, s.google_callback_url),
        extra_authorize_params={"access_type": "offline", "prompt": "consent"},
    ),
    Provider.TIKTOK: OAuthProviderConfig(
        provider=Provider.TIKTOK,
        authorize_url="https://www.tiktok.com/v2/auth/authorize/",
        token_url="https://open.tiktokapis.com/v2/oauth/token/",
        scopes=("user.info.basic", "user.info.stats"),
        fetch_profile=_tiktok_profile,
        credentials=lambda s: (s.tiktok_client_key, s.tiktok_client_secret, s.tiktok_callback_url),
        scope_separator=",",
        client_id_param="client_key",
    ),
    Provider.TWITCH: OAuthProviderConfig(
        provider=Provider.TWITCH,
        authorize_url="https://id.twitch.tv/oauth2/authorize",
        token_url="https://id.twitch.tv/oauth2/token",
        scopes=("user:read:email", "moderator:read:followers"),
        fetch_profile=_twitch_profile,
        credentials=lambda s: (s.twitch_client_id, s.twitch_client_secret, s.twitch_callback_url),
    ),
    Provider.SOOP: OAuthProviderConfig(
        provider=Provider.SOOP,
        authorize_url="https://openapi.sooplive.co.kr/oauth/authorize",
        token_url="https://openapi.sooplive.co.kr/oauth/token",
        scopes=("read",),
        fetch_profile=_soop_profile,
        credentials=lambda s: (s.soop_client_id, s.soop_client_secret, s.soop_callback_url),
    ),
    Provider.INSTAGRAM: OAuthProviderConfig(
        provider=Provider.INSTAGRAM,
        authorize_url="https://www.facebook.com/v18.0/dialog/oauth",
        token_url="https://graph.facebook.com/v18.0/oauth/access_token",
        scopes=("instagram_basic", "pages_show_list", "business_management"),
        fetch_profile=_instagram_profile,
        credentials=lambda s: (s.instagram_client_id, s.instagram_client_secret, s.instagram_callback_url),
        scope_separator=",",
    ),
    Provider.CHZZK: OAuthProviderConfig(
        provider=Provider.CHZZK,
        authorize_url="https://nid.naver.com/oauth2.0/authorize",
        token_url="https://nid.naver.com/oauth2.0/token",
        scopes=(),
        fetch_profile=_chzzk_profile,
        credentials=lambda s: (s.chzzk_client_id, s.chzzk_client_secret, s.chzzk_callback_url),
        send_state_on_exchange=True,
    ),
}


def get_provider_config(provider: str) -> OAuthProviderConfig:
    """Look up a provider by its path name. Raises ValueError for unknown providers."""
    try:
        return PROVIDERS[Provider(provider)]
    except ValueError:
        msg = f"Unsupported provider: {provider}"
        raise ValueError(msg) from None


def build_authorize_url(config: OAuthProviderConfig, settings: Settings, state: str) -> str:
    client_id, _, callback_url = config.credentials(settings)
    params: dict[str, str] = {
        config.client_id_param: client_id,
        "redirect_uri": callback_url,
        "response_type": "code",
        "state": state,
        **config.extra_authorize_params,
    }
    if config.scopes:
        params["scope"] = config.scope_separator.join(config.scopes)
    return f"{config.authorize_url}?{urlencode(params)}"


async def exchange_code(
    client: httpx.AsyncClient,
    config: OAuthProviderConfig,
    settings: Settings,
    code: str,
    state: str | None = None,
) -> TokenSet:
    """Trade an authorization code for tokens."""
    client_id, client_secret, callback_url = config.credentials(settings)
    form = {
        config.client_id_param: client_id,
        "client_secret": client_secret,
        "code": code,
        "grant_type": "authorization_code",
        "redirect_uri": callback_url,
    }
    if config.send_state_on_exchange and state:
        form["state"] = state

    resp = await client.post(config.token_url, data=form, headers={"Accept": "application/json"})
    if resp.status_code >= 400:
        logger.warning("oauth_token_exchange_failed", provider=config.provider.value, status=resp.status_code)
        msg = f"Token exchange failed ({resp.status_code})"
        raise OAuthError(msg)

    data: dict[str, Any] = resp.json()
    if "access_token" not in data:
        msg = data.get("error_description") or data.get("error") or "Token exchange returned no access token"
        raise OAuthError(msg)
    return TokenSet(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        expires_in=_int_or_none(data.get("expires_in")),
        raw=data,
    )


async def authenticate(
    config: OAuthProviderConfig,
    settings: Settings,
    code: str,
    state: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> OAuthProfile:
    """Run the code exchange and profile fetch for one callback."""
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=settings.oauth_http_timeout_seconds)
    try:
        token = await exchange_code(http, config, settings, code, state)
        try:
            profile = await config.fetch_profile(http, settings, token)
        except httpx.HTTPError as exc:
            msg = f"Failed to fetch {config.provider.value} profile"
            raise OAuthError(msg) from exc
    except httpx.HTTPError as exc:
        msg = f"{config.provider.value} is unreachable"
        raise OAuthError(msg) from exc
    finally:
        if owns_client:
            await http.aclose()

    profile.access_token = token.access_token
    profile.refresh_token = token.refresh_token
    profile.expires_at = token.expires_at
    return profile


async def fetch_profile_with_token(
    config: OAuthProviderConfig,
    settings: Settings,
    access_token: str,
    client: httpx.AsyncClient | None = None,
) -> OAuthProfile:
    """Re-read a provider profile using a stored access token."""
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=settings.oauth_http_timeout_seconds)
    try:
        return await config.fetch_profile(http, settings, TokenSet(access_token=access_token))
    except httpx.HTTPError as exc:
        msg = f"Failed to fetch {config.provider.value} profile"
        raise OAuthError(msg) from exc
    finally:
        if owns_client:
            await http.aclose()
