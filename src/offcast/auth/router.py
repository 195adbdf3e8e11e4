"""Auth router: all /api/v1/auth/* endpoints."""

from __future__ import annotations

import jwt
import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from offcast.auth.dependencies import get_current_user
from offcast.auth.jwt import create_oauth_state, verify_token
from offcast.auth.providers import OAuthError, build_authorize_url, get_provider_config
from offcast.auth.schemas import AuthUserResponse, DevLoginRequest, DevLoginResponse, TokenResponse
from offcast.auth.service import complete_oauth, dev_login, error_redirect_url, issue_token, success_redirect_url
from offcast.config import Settings, get_settings
from offcast.database import get_session
from offcast.db.models import User

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


def _user_response(user: User) -> AuthUserResponse:
    return AuthUserResponse(
        id=user.id,
        nickname=user.nickname,
        role=user.role,
        status=user.status,
        created_at=user.created_at,
    )


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@router.get("/me", response_model=AuthUserResponse)
async def me(user: User = Depends(get_current_user)) -> AuthUserResponse:
    """Get the authenticated user."""
    return _user_response(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> TokenResponse:
    """Issue a fresh access token for the authenticated user."""
    return issue_token(user, settings)


@router.post("/dev/login", response_model=DevLoginResponse)
async def dev_login_endpoint(
    body: DevLoginRequest,
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> DevLoginResponse:
    """Issue a token for a synthetic creator. Forbidden in production."""
    user = await dev_login(
        db,
        settings,
        provider=body.provider.value,
        nickname=body.nickname,
        subscriber_count=body.subscriber_count,
    )
    await db.commit()
    token = issue_token(user, settings)
    return DevLoginResponse(**token.model_dump(), user=_user_response(user))


# ---------------------------------------------------------------------------
# OAuth
# ---------------------------------------------------------------------------


@router.get("/{provider}")
async def oauth_start(
    provider: str,
    link_token: str | None = Query(None, description="Access token of the user linking this account"),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """Redirect to the provider's consent page."""
    try:
        config = get_provider_config(provider)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    if not config.is_configured(settings):
        raise HTTPException(status_code=404, detail=f"Login with {provider} is not enabled")

    link_user_id: str | None = None
    if link_token:
        try:
            link_user_id = str(verify_token(link_token, settings)["sub"])
        except jwt.InvalidTokenError as e:
            raise HTTPException(status_code=401, detail=str(e)) from e

    state = create_oauth_state(settings, config.provider.value, link_user_id)
    return RedirectResponse(build_authorize_url(config, settings, state), status_code=302)


@router.get("/{provider}/callback")
async def oauth_callback(
    provider: str,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """Finish the OAuth flow and hand the token to the frontend via redirect."""
    if error:
        logger.info("oauth_denied", provider=provider, error=error)
        return RedirectResponse(error_redirect_url(settings, error_description or error), status_code=302)

    try:
        config = get_provider_config(provider)
        if not code or not state:
            msg = "Missing authorization code"
            raise OAuthError(msg)
        user, profile = await complete_oauth(db, settings, config, code, state)
    except (OAuthError, ValueError) as e:
        await db.rollback()
        logger.warning("oauth_failed", provider=provider, error=str(e))
        return RedirectResponse(error_redirect_url(settings, str(e)), status_code=302)

    await db.commit()
    token = issue_token(user, settings)
    return RedirectResponse(success_redirect_url(settings, token.access_token, profile), status_code=302)
