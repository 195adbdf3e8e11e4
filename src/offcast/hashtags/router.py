"""Hashtag router: all /api/v1/hashtags/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from offcast.auth.dependencies import get_current_user
from offcast.common.pagination import Page, clamp_limit
from offcast.database import get_session
from offcast.db.models import Hashtag, User
from offcast.hashtags import service
from offcast.hashtags.schemas import HashtagResponse, TrendingHashtagResponse
from offcast.posts import service as post_service
from offcast.posts.router import post_page
from offcast.posts.schemas import PostResponse

router = APIRouter(prefix="/api/v1/hashtags", tags=["Hashtags"])


def hashtag_response(hashtag: Hashtag) -> HashtagResponse:
    return HashtagResponse(id=hashtag.id, name=hashtag.name, usage_count=hashtag.usage_count)


@router.get("/search", response_model=list[HashtagResponse])
async def search_hashtags(
    q: str = Query(..., min_length=1, max_length=50),
    limit: int = Query(10, ge=1, le=service.SEARCH_MAX_LIMIT),
    db: AsyncSession = Depends(get_session),
) -> list[HashtagResponse]:
    """Autocomplete: tags starting with ``q``."""
    return [hashtag_response(h) for h in await service.search(db, q, limit)]


@router.get("/popular", response_model=list[HashtagResponse])
async def popular_hashtags(
    limit: int = Query(10, ge=1, le=service.POPULAR_MAX_LIMIT),
    db: AsyncSession = Depends(get_session),
) -> list[HashtagResponse]:
    return [hashtag_response(h) for h in await service.get_popular(db, limit)]


@router.get("/trending", response_model=list[TrendingHashtagResponse])
async def trending_hashtags(
    limit: int = Query(10, ge=1, le=service.POPULAR_MAX_LIMIT),
    db: AsyncSession = Depends(get_session),
) -> list[TrendingHashtagResponse]:
    """Most used on posts in the last 24 hours."""
    return [
        TrendingHashtagResponse(id=h.id, name=h.name, usage_count=h.usage_count, recent_count=recent)
        for h, recent in await service.get_trending(db, limit)
    ]


@router.get("/{name}", response_model=HashtagResponse)
async def get_hashtag(name: str, db: AsyncSession = Depends(get_session)) -> HashtagResponse:
    """Exact lookup; a leading # and letter case are ignored."""
    hashtag = await service.find_by_name(db, name)
    if hashtag is None:
        raise HTTPException(status_code=404, detail="Hashtag not found")
    return hashtag_response(hashtag)


@router.get("/{name}/posts", response_model=Page[PostResponse])
async def posts_by_hashtag(
    name: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Page:
    """Posts carrying the tag, limited to channels the user can access."""
    limit = clamp_limit(limit)
    posts, total = await post_service.list_posts(db, user.id, hashtag=name, page=page, limit=limit)
    return await post_page(db, posts, total, page, limit, user.id)
