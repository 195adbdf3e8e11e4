"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from offcast.auth.jwt import verify_token
from offcast.config import Settings, get_settings
from offcast.database import get_session
from offcast.db.models import User, UserRole
from offcast.users.service import get_user_by_id

_bearer = HTTPBearer(auto_error=False)


async def _resolve_user(token: str, db: AsyncSession, settings: Settings) -> User:
    try:
        payload = verify_token(token, settings, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    user = await get_user_by_id(db, str(payload["sub"]))
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    if user.is_withdrawn:
        raise HTTPException(status_code=401, detail="Account has been withdrawn")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Extract and verify the bearer JWT, return the User model.

    Raises 401 when the header is missing, the token is invalid, or the user
    no longer exists or has withdrawn.
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return await _resolve_user(credentials.credentials, db, settings)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> User | None:
    """Like get_current_user, but anonymous requests get None instead of 401."""
    if credentials is None:
        return None
    return await _resolve_user(credentials.credentials, db, settings)


async def get_admin_user(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN.value:
        raise HTTPException(status_code=403, detail="Admin only")
    return user
