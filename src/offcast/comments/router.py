"""Comment router: all /api/v1/comments/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from offcast.auth.dependencies import get_current_user
from offcast.comments import service
from offcast.comments.schemas import (
    CommentCountResponse,
    CommentCreateRequest,
    CommentResponse,
    CommentUpdateRequest,
)
from offcast.common.pagination import Page, clamp_limit
from offcast.database import get_session
from offcast.db.models import Comment, User
from offcast.posts.schemas import AuthorInfoResponse, AuthorResponse, LikeStatusResponse, LikeToggleResponse
from offcast.posts.service import get_readable_post
from offcast.users.service import get_author_info, get_author_infos

router = APIRouter(prefix="/api/v1/comments", tags=["Comments"])


def comment_response(
    comment: Comment,
    infos: dict[str, str],
    liked: set[str],
    replies: list[Comment] | None = None,
) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        parent_id=comment.parent_id,
        author=AuthorResponse(
            id=comment.author_id,
            nickname=comment.author.nickname,
            author_info=infos.get(comment.author_id, ""),
        ),
        content=comment.content,
        image_url=comment.image_url,
        hashtags=[h.name for h in comment.hashtags],
        like_count=comment.like_count,
        is_liked=comment.id in liked,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        replies=[comment_response(r, infos, liked) for r in replies or []],
    )


async def _single_response(db: AsyncSession, comment: Comment, user_id: str) -> CommentResponse:
    infos = await get_author_infos(db, [comment.author_id])
    liked = await service.liked_comment_ids(db, [comment.id], user_id)
    return comment_response(comment, infos, liked)


@router.get("", response_model=Page[CommentResponse])
async def list_comments(
    post_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Page:
    """Top-level comments on a post with their replies, oldest first."""
    limit = clamp_limit(limit)
    threads, total = await service.list_comments(db, post_id, user.id, page=page, limit=limit)

    everyone = [c for comment, replies in threads for c in (comment, *replies)]
    infos = await get_author_infos(db, [c.author_id for c in everyone])
    liked = await service.liked_comment_ids(db, [c.id for c in everyone], user.id)
    items = [comment_response(comment, infos, liked, replies) for comment, replies in threads]
    return Page[CommentResponse].build(items, total, page, limit)


@router.get("/count", response_model=CommentCountResponse)
async def comment_count(
    post_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CommentCountResponse:
    await get_readable_post(db, post_id, user.id)
    return CommentCountResponse(post_id=post_id, count=await service.get_comment_count(db, post_id))


@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(
    comment_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CommentResponse:
    comment = await service.get_comment(db, comment_id)
    if comment is None:
        raise HTTPException(status_code=404, detail="Comment not found")
    await get_readable_post(db, comment.post_id, user.id)
    return await _single_response(db, comment, user.id)


@router.post("", response_model=CommentResponse, status_code=201)
async def create_comment(
    body: CommentCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CommentResponse:
    comment = await service.create_comment(
        db,
        author_id=user.id,
        post_id=body.post_id,
        content=body.content,
        parent_id=body.parent_id,
        image_url=body.image_url,
        image_key=body.image_key,
        hashtags=body.hashtags,
    )
    await db.commit()
    return await _single_response(db, comment, user.id)


@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: str,
    body: CommentUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CommentResponse:
    comment = await service.update_comment(db, comment_id, user.id, body.content, body.hashtags)
    await db.commit()
    return await _single_response(db, comment, user.id)


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> None:
    await service.delete_comment(db, comment_id, user.id)
    await db.commit()


@router.post("/{comment_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    comment_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> LikeToggleResponse:
    liked, like_count = await service.toggle_like(db, comment_id, user.id)
    await db.commit()
    return LikeToggleResponse(liked=liked, like_count=like_count)


@router.get("/{comment_id}/like", response_model=LikeStatusResponse)
async def like_status(
    comment_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> LikeStatusResponse:
    return LikeStatusResponse(liked=await service.has_user_liked(db, comment_id, user.id))


@router.get("/{comment_id}/author-info", response_model=AuthorInfoResponse)
async def author_info(
    comment_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AuthorInfoResponse:
    comment = await service.get_comment(db, comment_id)
    if comment is None:
        raise HTTPException(status_code=404, detail="Comment not found")
    await get_readable_post(db, comment.post_id, user.id)
    return AuthorInfoResponse(author_info=await get_author_info(db, comment.author_id))
