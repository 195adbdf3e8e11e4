"""Pydantic schemas for block endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class BlockedUserResponse(BaseModel):
    user_id: str
    nickname: str | None = None
    blocked_at: datetime


class BlockStatusResponse(BaseModel):
    user_id: str
    blocked: bool
