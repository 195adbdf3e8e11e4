"""Pydantic schemas for channel endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from offcast.db.models import Provider


class ChannelResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    min_subscribers: int
    max_subscribers: int | None = None
    provider_only: str | None = None
    sort_order: int


class ChannelCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    description: str | None = Field(None, max_length=500)
    min_subscribers: int = Field(0, ge=0)
    max_subscribers: int | None = Field(None, ge=0)
    provider_only: Provider | None = None
    sort_order: int = 0


class ChannelAccessResponse(BaseModel):
    channel: ChannelResponse
    expires_at: datetime


class AccessibleChannelsResponse(BaseModel):
    subscriber_count: int
    channels: list[ChannelResponse]


class CheckAccessResponse(BaseModel):
    channel_id: str
    has_access: bool
    cached: bool


class SeedResponse(BaseModel):
    created: int
