"""
HS256 JWT token management.

Access tokens carry the user id in ``sub``. OAuth round-trips carry a
short-lived ``oauth_state`` token through the provider so the callback can
tell a login flow from an account-link flow.
"""

from __future__ import annotations

import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from offcast.config import Settings

_DEFAULT_EXPIRES_SECONDS = 7 * 24 * 60 * 60
_DURATION_RE = re.compile(r"^(\d+)([smhd])$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_expires_in(value: str) -> int:
    """
    Parse a duration like ``"7d"`` or ``"12h"`` into seconds.

    Anything unparseable falls back to seven days.
    """
    match = _DURATION_RE.match(value.strip())
    if not match:
        return _DEFAULT_EXPIRES_SECONDS
    amount, unit = match.groups()
    return int(amount) * _UNIT_SECONDS[unit]


def _encode(payload: dict[str, Any], settings: Settings) -> str:
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: str, settings: Settings) -> str:
    """
    Create an access token for a user.

    Args:
        user_id: The user's database ID.
        settings: Application settings supplying secret, algorithm and lifetime.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(seconds=parse_expires_in(settings.jwt_expires_in)),
        "iss": settings.jwt_issuer,
        "type": "access",
    }
    return _encode(payload, settings)


def create_oauth_state(settings: Settings, provider: str, link_user_id: str | None = None) -> str:
    """Create the signed ``state`` parameter sent to an OAuth provider."""
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "provider": provider,
        "nonce": secrets.token_urlsafe(16),
        "iat": now,
        "exp": now + timedelta(seconds=settings.oauth_state_expire_seconds),
        "iss": settings.jwt_issuer,
        "type": "oauth_state",
    }
    if link_user_id is not None:
        payload["link_user_id"] = link_user_id
    return _encode(payload, settings)


def verify_token(token: str, settings: Settings, expected_type: str = "access") -> dict[str, Any]:
    """
    Verify and decode a JWT token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or of the wrong type.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if payload.get("type") != expected_type:
        msg = f"Expected token type '{expected_type}', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)

    return payload
