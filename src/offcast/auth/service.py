"""Authentication service: OAuth callback handling and token issuance."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlencode

import httpx
import jwt
import structlog

from offcast.auth.jwt import create_access_token, parse_expires_in, verify_token
from offcast.auth.providers import OAuthError, OAuthProviderConfig, authenticate
from offcast.auth.schemas import TokenResponse
from offcast.config import Settings
from offcast.db.models import User
from offcast.errors import ConflictError, ForbiddenError
from offcast.users.service import (
    OAuthProfile,
    get_active_user,
    link_account,
    resolve_or_create,
    update_nickname,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def issue_token(user: User, settings: Settings) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, settings),
        expires_in=parse_expires_in(settings.jwt_expires_in),
    )


# ---------------------------------------------------------------------------
# Redirects back to the frontend
# ---------------------------------------------------------------------------


def success_redirect_url(settings: Settings, token: str, profile: OAuthProfile) -> str:
    params: dict[str, str] = {"token": token, "provider": profile.provider}
    if profile.profile_name:
        params["channelName"] = profile.profile_name
    if profile.subscriber_count is not None:
        params["subscriberCount"] = str(profile.subscriber_count)
    return f"{settings.frontend_url}/auth/callback?{urlencode(params)}"


def error_redirect_url(settings: Settings, message: str) -> str:
    return f"{settings.frontend_url}/auth/callback?{urlencode({'error': message})}"


# ---------------------------------------------------------------------------
# OAuth callback
# ---------------------------------------------------------------------------


async def complete_oauth(
    db: AsyncSession,
    settings: Settings,
    config: OAuthProviderConfig,
    code: str,
    state: str,
    client: httpx.AsyncClient | None = None,
) -> tuple[User, OAuthProfile]:
    """
    Finish an OAuth round-trip: validate state, exchange the code, then log in
    or link depending on what the state token carries.

    Raises:
        OAuthError: Any failure that should be reported back to the frontend.
    """
    try:
        state_payload = verify_token(state, settings, expected_type="oauth_state")
    except jwt.InvalidTokenError as e:
        msg = "Invalid or expired OAuth state"
        raise OAuthError(msg) from e
    if state_payload.get("provider") != config.provider.value:
        msg = "OAuth state does not match provider"
        raise OAuthError(msg)

    profile = await authenticate(config, settings, code, state=state, client=client)

    link_user_id = state_payload.get("link_user_id")
    if link_user_id:
        user = await get_active_user(db, link_user_id)
        if user is None:
            msg = "User not found"
            raise OAuthError(msg)
        try:
            await link_account(db, user.id, profile)
        except ConflictError as e:
            raise OAuthError(e.detail) from e
        return user, profile

    resolved = await resolve_or_create(db, profile)
    if resolved is None:
        msg = "This account has been withdrawn"
        raise OAuthError(msg)
    return resolved, profile


# ---------------------------------------------------------------------------
# Development login
# ---------------------------------------------------------------------------


async def dev_login(
    db: AsyncSession,
    settings: Settings,
    provider: str,
    nickname: str | None = None,
    subscriber_count: int = 150_000,
) -> User:
    """Log in as a synthetic creator without a provider round-trip. Disabled in production."""
    if settings.is_production:
        msg = "Dev login is not available in production"
        raise ForbiddenError(msg)

    handle = nickname or "tester"
    profile = OAuthProfile(
        provider=provider,
        provider_account_id=f"dev-{provider}-{handle}",
        access_token="dev-access-token",
        profile_name=handle,
        subscriber_count=subscriber_count,
    )
    user = await resolve_or_create(db, profile)
    if user is None:
        msg = "This account has been withdrawn"
        raise ForbiddenError(msg)
    if nickname and user.nickname is None:
        await update_nickname(db, user, nickname)
    logger.info("dev_login", user_id=user.id, provider=provider, subscriber_count=subscriber_count)
    return user
