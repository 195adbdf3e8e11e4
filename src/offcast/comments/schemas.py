"""Pydantic schemas for comment endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from offcast.posts.schemas import AuthorResponse


class CommentCreateRequest(BaseModel):
    post_id: str
    content: str = Field(..., min_length=1, max_length=1000)
    parent_id: str | None = None
    image_url: str | None = Field(None, max_length=2048)
    image_key: str | None = Field(None, max_length=255)
    hashtags: list[str] = Field(default_factory=list, max_length=10)


class CommentUpdateRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)
    hashtags: list[str] | None = Field(None, max_length=10)


class CommentResponse(BaseModel):
    id: str
    post_id: str
    parent_id: str | None = None
    author: AuthorResponse
    content: str
    image_url: str | None = None
    hashtags: list[str]
    like_count: int
    is_liked: bool = False
    created_at: datetime
    updated_at: datetime
    replies: list[CommentResponse] = Field(default_factory=list)


class CommentCountResponse(BaseModel):
    post_id: str
    count: int
