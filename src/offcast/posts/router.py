"""Post router: all /api/v1/posts/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from offcast.auth.dependencies import get_current_user
from offcast.common.pagination import Page, clamp_limit
from offcast.database import get_session
from offcast.db.models import Post, User
from offcast.posts import service
from offcast.posts.schemas import (
    AuthorInfoResponse,
    AuthorResponse,
    LikeStatusResponse,
    LikeToggleResponse,
    PostCreateRequest,
    PostImageResponse,
    PostResponse,
    PostUpdateRequest,
)
from offcast.users.service import get_author_info, get_author_infos

router = APIRouter(prefix="/api/v1/posts", tags=["Posts"])


def post_response(post: Post, author_info: str, is_liked: bool = False) -> PostResponse:
    return PostResponse(
        id=post.id,
        channel_id=post.channel_id,
        channel_slug=post.channel.slug,
        author=AuthorResponse(id=post.author_id, nickname=post.author.nickname, author_info=author_info),
        title=post.title,
        content=post.content,
        images=[PostImageResponse(url=i.url, key=i.key, order=i.order) for i in post.images],
        hashtags=[h.name for h in post.hashtags],
        view_count=post.view_count,
        like_count=post.like_count,
        comment_count=post.comment_count,
        is_liked=is_liked,
        created_at=post.created_at,
        updated_at=post.updated_at,
    )


async def post_page(db: AsyncSession, posts: list[Post], total: int, page: int, limit: int, viewer_id: str) -> Page:
    infos = await get_author_infos(db, [p.author_id for p in posts])
    liked = await service.liked_post_ids(db, [p.id for p in posts], viewer_id)
    items = [post_response(p, infos.get(p.author_id, ""), p.id in liked) for p in posts]
    return Page[PostResponse].build(items, total, page, limit)


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


@router.get("", response_model=Page[PostResponse])
async def list_posts(
    channel_id: str | None = None,
    keyword: str | None = Query(None, max_length=100),
    hashtag: str | None = Query(None, max_length=50),
    sort: service.PostSort = "latest",
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Page:
    """Posts in one channel, or across all channels the user can access."""
    limit = clamp_limit(limit)
    posts, total = await service.list_posts(
        db,
        user.id,
        channel_id=channel_id,
        keyword=keyword,
        hashtag=hashtag,
        sort=sort,
        page=page,
        limit=limit,
    )
    return await post_page(db, posts, total, page, limit, user.id)


@router.get("/my", response_model=Page[PostResponse])
async def my_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(service.AUTHOR_PAGE_LIMIT, ge=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Page:
    limit = clamp_limit(limit, default=service.AUTHOR_PAGE_LIMIT)
    posts, total = await service.list_posts_by_author(db, user.id, page=page, limit=limit)
    return await post_page(db, posts, total, page, limit, user.id)


# ---------------------------------------------------------------------------
# Single post
# ---------------------------------------------------------------------------


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PostResponse:
    """Post detail. Counts a view."""
    await service.get_readable_post(db, post_id, user.id)
    await service.increment_view_count(db, post_id)
    await db.commit()

    post = await service.get_post(db, post_id)
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return post_response(
        post,
        await get_author_info(db, post.author_id),
        await service.has_user_liked(db, post_id, user.id),
    )


@router.post("", response_model=PostResponse, status_code=201)
async def create_post(
    body: PostCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PostResponse:
    post = await service.create_post(
        db,
        author_id=user.id,
        channel_id=body.channel_id,
        title=body.title,
        content=body.content,
        hashtags=body.hashtags,
        image_urls=body.image_urls,
        image_keys=body.image_keys,
    )
    await db.commit()
    return post_response(post, await get_author_info(db, user.id))


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    body: PostUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PostResponse:
    post = await service.update_post(
        db, post_id, user.id, title=body.title, content=body.content, hashtags=body.hashtags
    )
    await db.commit()
    return post_response(
        post,
        await get_author_info(db, user.id),
        await service.has_user_liked(db, post_id, user.id),
    )


@router.delete("/{post_id}", status_code=204)
async def delete_post(
    post_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> None:
    await service.delete_post(db, post_id, user.id)
    await db.commit()


# ---------------------------------------------------------------------------
# Likes & author
# ---------------------------------------------------------------------------


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    post_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> LikeToggleResponse:
    liked, like_count = await service.toggle_like(db, post_id, user.id)
    await db.commit()
    return LikeToggleResponse(liked=liked, like_count=like_count)


@router.get("/{post_id}/like", response_model=LikeStatusResponse)
async def like_status(
    post_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> LikeStatusResponse:
    return LikeStatusResponse(liked=await service.has_user_liked(db, post_id, user.id))


@router.get("/{post_id}/author-info", response_model=AuthorInfoResponse)
async def author_info(
    post_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AuthorInfoResponse:
    """``provider|nickname|formatted count`` badge for the post's author."""
    post = await service.get_readable_post(db, post_id, user.id)
    return AuthorInfoResponse(author_info=await get_author_info(db, post.author_id))
