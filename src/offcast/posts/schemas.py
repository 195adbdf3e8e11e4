"""Pydantic schemas for post endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class PostCreateRequest(BaseModel):
    channel_id: str
    title: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1, max_length=5000)
    hashtags: list[str] = Field(default_factory=list, max_length=10)
    image_urls: list[str] = Field(default_factory=list, max_length=10)
    image_keys: list[str] = Field(default_factory=list, max_length=10)


class PostUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=100)
    content: str | None = Field(None, min_length=1, max_length=5000)
    hashtags: list[str] | None = Field(None, max_length=10)


class PostImageResponse(BaseModel):
    url: str
    key: str | None = None
    order: int


class AuthorResponse(BaseModel):
    id: str
    nickname: str | None = None
    author_info: str


class PostResponse(BaseModel):
    id: str
    channel_id: str
    channel_slug: str
    author: AuthorResponse
    title: str
    content: str
    images: list[PostImageResponse]
    hashtags: list[str]
    view_count: int
    like_count: int
    comment_count: int
    is_liked: bool = False
    created_at: datetime
    updated_at: datetime


class LikeToggleResponse(BaseModel):
    liked: bool
    like_count: int


class LikeStatusResponse(BaseModel):
    liked: bool


class AuthorInfoResponse(BaseModel):
    author_info: str
