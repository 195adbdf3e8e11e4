"""Pydantic schemas for hashtag endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class HashtagResponse(BaseModel):
    id: str
    name: str
    usage_count: int


class TrendingHashtagResponse(HashtagResponse):
    recent_count: int
