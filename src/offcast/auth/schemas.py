"""Pydantic schemas for auth endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from offcast.db.models import Provider


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class AuthUserResponse(BaseModel):
    id: str
    nickname: str | None = None
    role: str
    status: str
    created_at: datetime


class DevLoginRequest(BaseModel):
    provider: Provider
    nickname: str | None = Field(None, min_length=2, max_length=20)
    subscriber_count: int = Field(150_000, ge=0)


class DevLoginResponse(TokenResponse):
    user: AuthUserResponse
