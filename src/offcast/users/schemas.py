"""Pydantic schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class AccountResponse(BaseModel):
    id: str
    provider: str
    profile_name: str | None = None
    profile_image: str | None = None
    subscriber_count: int | None = None
    created_at: datetime


class UserStatsResponse(BaseModel):
    post_count: int
    comment_count: int


class ProfileResponse(BaseModel):
    id: str
    nickname: str | None = None
    role: str
    status: str
    created_at: datetime
    max_subscriber_count: int
    accounts: list[AccountResponse]
    stats: UserStatsResponse


class NicknameUpdateRequest(BaseModel):
    nickname: str = Field(..., min_length=2, max_length=20)
