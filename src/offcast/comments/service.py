"""Comment business logic.

Comments are one level deep: a reply's parent must be a top-level comment on
the same post. Creating or deleting a comment moves ``post.comment_count`` in
the same transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import case, delete, func, select, update

from offcast.blocks.service import get_blocked_user_ids
from offcast.common.pagination import offset_for
from offcast.db.models import Comment, CommentLike, ContentStatus, Post, utcnow
from offcast.db.upsert import insert_ignore
from offcast.errors import BadRequestError, ForbiddenError, NotFoundError
from offcast.hashtags.service import attach_comment_hashtags, detach_comment_hashtags
from offcast.posts.service import get_readable_post

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def _visible() -> list:
    return [Comment.deleted_at.is_(None), Comment.status == ContentStatus.ACTIVE.value]


async def _bump_comment_count(db: AsyncSession, post_id: str, delta: int) -> None:
    await db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values(comment_count=case((Post.comment_count + delta < 0, 0), else_=Post.comment_count + delta))
        .execution_options(synchronize_session=False)
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_comment(db: AsyncSession, comment_id: str) -> Comment | None:
    result = await db.execute(
        select(Comment).where(Comment.id == comment_id, *_visible()).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_comments(
    db: AsyncSession,
    post_id: str,
    viewer_id: str,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[tuple[Comment, list[Comment]]], int]:
    """
    Top-level comments on a post, oldest first, each with its visible replies.

    Returns ([(comment, replies)], total top-level count).
    """
    await get_readable_post(db, post_id, viewer_id)

    blocked = await get_blocked_user_ids(db, viewer_id)
    filters = [Comment.post_id == post_id, *_visible()]
    if blocked:
        filters.append(Comment.author_id.not_in(blocked))

    top_level = select(Comment).where(*filters, Comment.parent_id.is_(None))
    total = await db.scalar(select(func.count()).select_from(top_level.subquery()))
    result = await db.execute(
        top_level.order_by(Comment.created_at.asc(), Comment.id).offset(offset_for(page, limit)).limit(limit)
    )
    comments = list(result.scalars().all())

    replies_by_parent: dict[str, list[Comment]] = {c.id: [] for c in comments}
    if comments:
        replies = await db.execute(
            select(Comment)
            .where(*filters, Comment.parent_id.in_(list(replies_by_parent)))
            .order_by(Comment.created_at.asc(), Comment.id)
        )
        for reply in replies.scalars().all():
            replies_by_parent[reply.parent_id].append(reply)  # type: ignore[index]

    return [(c, replies_by_parent[c.id]) for c in comments], total or 0


async def get_comment_count(db: AsyncSession, post_id: str) -> int:
    """Live count of visible comments on a post."""
    count = await db.scalar(select(func.count()).select_from(Comment).where(Comment.post_id == post_id, *_visible()))
    return count or 0


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def create_comment(
    db: AsyncSession,
    author_id: str,
    post_id: str,
    content: str,
    parent_id: str | None = None,
    image_url: str | None = None,
    image_key: str | None = None,
    hashtags: list[str] | None = None,
) -> Comment:
    # 404 for a missing post, 403 without live access to its channel
    await get_readable_post(db, post_id, author_id)

    if parent_id is not None:
        parent = await get_comment(db, parent_id)
        if parent is None:
            msg = "Parent comment not found"
            raise NotFoundError(msg)
        if parent.post_id != post_id:
            msg = "Parent comment belongs to a different post"
            raise BadRequestError(msg)
        if parent.parent_id is not None:
            msg = "Replies cannot be nested"
            raise BadRequestError(msg)

    comment = Comment(
        post_id=post_id,
        author_id=author_id,
        parent_id=parent_id,
        content=content,
        image_url=image_url,
        image_key=image_key,
    )
    db.add(comment)
    await db.flush()
    await attach_comment_hashtags(db, comment.id, hashtags or [])
    await _bump_comment_count(db, post_id, 1)
    await db.flush()

    logger.info("comment_created", comment_id=comment.id, post_id=post_id, author_id=author_id)
    created = await get_comment(db, comment.id)
    if created is None:
        msg = "Comment not found"
        raise NotFoundError(msg)
    return created


async def _get_owned_comment(db: AsyncSession, comment_id: str, user_id: str) -> Comment:
    comment = await get_comment(db, comment_id)
    if comment is None:
        msg = "Comment not found"
        raise NotFoundError(msg)
    if comment.author_id != user_id:
        msg = "You can only modify your own comments"
        raise ForbiddenError(msg)
    return comment


async def update_comment(
    db: AsyncSession,
    comment_id: str,
    user_id: str,
    content: str,
    hashtags: list[str] | None = None,
) -> Comment:
    comment = await _get_owned_comment(db, comment_id, user_id)
    comment.content = content
    if hashtags is not None:
        await detach_comment_hashtags(db, comment.id)
        await attach_comment_hashtags(db, comment.id, hashtags)
    await db.flush()

    updated = await get_comment(db, comment.id)
    if updated is None:
        msg = "Comment not found"
        raise NotFoundError(msg)
    return updated


async def delete_comment(db: AsyncSession, comment_id: str, user_id: str) -> None:
    comment = await _get_owned_comment(db, comment_id, user_id)
    await detach_comment_hashtags(db, comment.id)
    comment.status = ContentStatus.DELETED.value
    comment.deleted_at = utcnow()
    await _bump_comment_count(db, comment.post_id, -1)
    await db.flush()
    logger.info("comment_deleted", comment_id=comment.id, post_id=comment.post_id)


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------


async def toggle_like(db: AsyncSession, comment_id: str, user_id: str) -> tuple[bool, int]:
    """Like or unlike a comment. Returns (liked, like_count)."""
    comment = await get_comment(db, comment_id)
    if comment is None:
        msg = "Comment not found"
        raise NotFoundError(msg)
    await get_readable_post(db, comment.post_id, user_id)

    removed = await db.execute(
        delete(CommentLike)
        .where(CommentLike.comment_id == comment_id, CommentLike.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    if removed.rowcount:
        liked, delta = False, -1
    else:
        inserted = await insert_ignore(
            db, CommentLike.__table__, {"comment_id": comment_id, "user_id": user_id}, ["comment_id", "user_id"]
        )
        liked, delta = True, (1 if inserted else 0)

    if delta:
        await db.execute(
            update(Comment)
            .where(Comment.id == comment_id)
            .values(like_count=case((Comment.like_count + delta < 0, 0), else_=Comment.like_count + delta))
            .execution_options(synchronize_session=False)
        )
    like_count = await db.scalar(select(Comment.like_count).where(Comment.id == comment_id))
    return liked, like_count or 0


async def has_user_liked(db: AsyncSession, comment_id: str, user_id: str) -> bool:
    result = await db.execute(
        select(CommentLike.id).where(CommentLike.comment_id == comment_id, CommentLike.user_id == user_id)
    )
    return result.scalar_one_or_none() is not None


async def liked_comment_ids(db: AsyncSession, comment_ids: list[str], user_id: str) -> set[str]:
    if not comment_ids:
        return set()
    result = await db.execute(
        select(CommentLike.comment_id).where(CommentLike.user_id == user_id, CommentLike.comment_id.in_(comment_ids))
    )
    return set(result.scalars().all())
