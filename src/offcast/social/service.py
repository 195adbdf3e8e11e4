"""Linked-account sync and platform statistics, read with stored tokens."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx
import structlog

from offcast.auth.providers import OAuthError, fetch_profile_with_token, get_provider_config
from offcast.channels.service import refresh_access_by_subscriber_count
from offcast.db.models import Provider
from offcast.errors import BadRequestError, NotFoundError, UpstreamError
from offcast.social.schemas import AllStatsResponse, ProviderStats
from offcast.social.stats import STATS_FETCHERS, fetch_stats
from offcast.users.service import (
    apply_profile,
    get_account_by_provider,
    get_accounts,
    get_max_subscriber_count,
    get_user_providers,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from offcast.config import Settings
    from offcast.db.models import Account

logger = structlog.get_logger()

STATS_PROVIDERS = frozenset(p.value for p in STATS_FETCHERS)


async def sync_account(
    db: AsyncSession,
    settings: Settings,
    user_id: str,
    provider: str,
    client: httpx.AsyncClient | None = None,
) -> Account:
    """
    Refresh one linked account's cached profile and subscriber count, then
    re-grant channel access from the new maximum.

    The stored access token is used as-is; an expired token surfaces as 502
    and the user must log in with the provider again.
    """
    try:
        config = get_provider_config(provider)
    except ValueError as e:
        raise NotFoundError(str(e)) from None

    account = await get_account_by_provider(db, user_id, provider)
    if account is None:
        msg = "Linked account not found"
        raise NotFoundError(msg)
    if not account.access_token:
        msg = "No stored token for this account; log in again to refresh it"
        raise BadRequestError(msg)

    try:
        profile = await fetch_profile_with_token(config, settings, account.access_token, client=client)
    except OAuthError as e:
        logger.warning("social_sync_failed", user_id=user_id, provider=provider, error=str(e))
        raise UpstreamError(str(e)) from e

    if profile.provider_account_id != account.provider_account_id:
        msg = "Provider returned a different account"
        raise UpstreamError(msg)

    profile.access_token = account.access_token
    profile.expires_at = account.expires_at
    apply_profile(account, profile)
    await db.flush()

    await refresh_access_by_subscriber_count(
        db,
        user_id,
        await get_max_subscriber_count(db, user_id),
        await get_user_providers(db, user_id),
        ttl_hours=settings.channel_access_ttl_hours,
    )
    logger.info("social_account_synced", user_id=user_id, provider=provider, subscriber_count=account.subscriber_count)
    return account


def _stats_provider(provider: str) -> Provider:
    parsed = next((p for p in STATS_FETCHERS if p.value == provider), None)
    if parsed is None:
        msg = f"Unknown provider: {provider}"
        raise BadRequestError(msg)
    return parsed


async def get_stats_by_provider(
    db: AsyncSession,
    settings: Settings,
    user_id: str,
    provider: str,
    client: httpx.AsyncClient | None = None,
) -> ProviderStats:
    """Live statistics for one linked platform (400 unknown, 404 not linked, 502 upstream)."""
    parsed = _stats_provider(provider)
    account = await get_account_by_provider(db, user_id, parsed.value)
    if account is None:
        msg = "Linked account not found"
        raise NotFoundError(msg)
    if not account.access_token:
        msg = "No stored token for this account; log in again to refresh it"
        raise BadRequestError(msg)

    try:
        return await fetch_stats(parsed, settings, account.access_token, client=client)
    except OAuthError as e:
        logger.warning("social_stats_failed", user_id=user_id, provider=provider, error=str(e))
        raise UpstreamError(str(e)) from e


async def get_all_stats(
    db: AsyncSession,
    settings: Settings,
    user_id: str,
    client: httpx.AsyncClient | None = None,
) -> AllStatsResponse:
    """
    Statistics for every linked platform that has them, fetched concurrently.

    A platform that fails is logged and left out; the others are still returned.
    """
    targets = [
        (Provider(a.provider), a.access_token)
        for a in await get_accounts(db, user_id)
        if a.access_token and a.provider in STATS_PROVIDERS
    ]
    if not targets:
        return AllStatsResponse()

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=settings.oauth_http_timeout_seconds)
    try:
        results = await asyncio.gather(
            *(fetch_stats(provider, settings, token, client=http) for provider, token in targets),
            return_exceptions=True,
        )
    finally:
        if owns_client:
            await http.aclose()

    stats = AllStatsResponse()
    for (provider, _), result in zip(targets, results):
        if isinstance(result, OAuthError):
            logger.warning("social_stats_failed", user_id=user_id, provider=provider.value, error=str(result))
            continue
        if isinstance(result, BaseException):
            raise result
        setattr(stats, provider.value, result)
    return stats
