"""Post business logic.

Rules:
- Writing into a channel requires live access (max subscriber count across
  linked accounts, plus provider for platform channels)
- Only the author may edit or delete; deletion is soft
- like_count / comment_count / hashtag usage_count change in the same
  transaction as the rows they count
- Posts by users the viewer blocked are hidden from listings
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Literal

import structlog
from sqlalchemy import Select, case, delete, func, or_, select, update

from offcast.blocks.service import get_blocked_user_ids
from offcast.channels.service import get_accessible_channels_for_user, require_channel_access
from offcast.common.pagination import offset_for
from offcast.db.models import (
    ContentStatus,
    Hashtag,
    Post,
    PostHashtag,
    PostImage,
    PostLike,
    as_utc,
    utcnow,
)
from offcast.db.upsert import insert_ignore
from offcast.errors import BadRequestError, ForbiddenError, NotFoundError
from offcast.hashtags.service import (
    attach_post_hashtags,
    detach_post_comment_hashtags,
    detach_post_hashtags,
    normalize_hashtag,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

PostSort = Literal["latest", "views", "popular"]

MAX_IMAGES = 10
AUTHOR_PAGE_LIMIT = 15
POPULAR_GRAVITY = 1.2


def popularity_score(like_count: int, created_at: datetime, now: datetime | None = None) -> float:
    """Time-decayed popularity: ``likes / (hours_since_post + 2) ** 1.2``."""
    now = now or utcnow()
    hours = max((now - as_utc(created_at)).total_seconds() / 3600, 0.0)
    return like_count / (hours + 2) ** POPULAR_GRAVITY


def _visible() -> list:
    return [Post.deleted_at.is_(None), Post.status == ContentStatus.ACTIVE.value]


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_post(db: AsyncSession, post_id: str) -> Post | None:
    """A post that is neither deleted nor hidden, with images and hashtags freshly loaded."""
    result = await db.execute(
        select(Post).where(Post.id == post_id, *_visible()).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _get_owned_post(db: AsyncSession, post_id: str, user_id: str) -> Post:
    post = await get_post(db, post_id)
    if post is None:
        msg = "Post not found"
        raise NotFoundError(msg)
    if post.author_id != user_id:
        msg = "You can only modify your own posts"
        raise ForbiddenError(msg)
    return post


async def get_readable_post(db: AsyncSession, post_id: str, user_id: str) -> Post:
    """Load a post the user may read. 404 if missing, 403 without live access to its channel."""
    post = await get_post(db, post_id)
    if post is None:
        msg = "Post not found"
        raise NotFoundError(msg)
    await require_channel_access(db, user_id, post.channel_id)
    return post


async def _filtered_query(
    db: AsyncSession,
    viewer_id: str,
    channel_id: str | None,
    keyword: str | None,
    hashtag: str | None,
) -> Select:  # type: ignore[type-arg]
    if channel_id:
        await require_channel_access(db, viewer_id, channel_id)
        channel_ids = [channel_id]
    else:
        channel_ids = [c.id for c in await get_accessible_channels_for_user(db, viewer_id)]

    query = select(Post).where(*_visible(), Post.channel_id.in_(channel_ids))

    blocked = await get_blocked_user_ids(db, viewer_id)
    if blocked:
        query = query.where(Post.author_id.not_in(blocked))

    if keyword and keyword.strip():
        pattern = f"%{keyword.strip()}%"
        query = query.where(or_(Post.title.ilike(pattern), Post.content.ilike(pattern)))

    if hashtag and normalize_hashtag(hashtag):
        tagged = (
            select(PostHashtag.post_id)
            .join(Hashtag, Hashtag.id == PostHashtag.hashtag_id)
            .where(Hashtag.name == normalize_hashtag(hashtag))
        )
        query = query.where(Post.id.in_(tagged))

    return query


async def list_posts(
    db: AsyncSession,
    viewer_id: str,
    channel_id: str | None = None,
    keyword: str | None = None,
    hashtag: str | None = None,
    sort: PostSort = "latest",
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Post], int]:
    """
    Visible posts in one channel (live access required) or across every
    channel the viewer can access. Returns (page items, total).
    """
    query = await _filtered_query(db, viewer_id, channel_id, keyword, hashtag)
    offset = offset_for(page, limit)

    if sort == "popular":
        posts = list((await db.execute(query)).scalars().all())
        now = utcnow()
        posts.sort(key=lambda p: (popularity_score(p.like_count, p.created_at, now), as_utc(p.created_at)), reverse=True)
        return posts[offset : offset + limit], len(posts)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))
    if sort == "views":
        ordered = query.order_by(Post.view_count.desc(), Post.created_at.desc())
    else:
        ordered = query.order_by(Post.created_at.desc())
    result = await db.execute(ordered.offset(offset).limit(limit))
    return list(result.scalars().all()), total or 0


async def list_posts_by_author(
    db: AsyncSession, author_id: str, page: int = 1, limit: int = AUTHOR_PAGE_LIMIT
) -> tuple[list[Post], int]:
    query = select(Post).where(*_visible(), Post.author_id == author_id)
    total = await db.scalar(select(func.count()).select_from(query.subquery()))
    result = await db.execute(query.order_by(Post.created_at.desc()).offset(offset_for(page, limit)).limit(limit))
    return list(result.scalars().all()), total or 0


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def _image_rows(post_id: str, image_urls: list[str], image_keys: list[str] | None) -> list[PostImage]:
    if len(image_urls) > MAX_IMAGES:
        msg = f"A post can have at most {MAX_IMAGES} images"
        raise BadRequestError(msg)
    keys = image_keys or []
    return [
        PostImage(post_id=post_id, url=url, key=keys[index] if index < len(keys) else None, order=index)
        for index, url in enumerate(image_urls)
    ]


async def create_post(
    db: AsyncSession,
    author_id: str,
    channel_id: str,
    title: str,
    content: str,
    hashtags: list[str] | None = None,
    image_urls: list[str] | None = None,
    image_keys: list[str] | None = None,
) -> Post:
    """Create a post with its images and hashtags in the caller's transaction."""
    await require_channel_access(db, author_id, channel_id)

    post = Post(author_id=author_id, channel_id=channel_id, title=title, content=content)
    db.add(post)
    await db.flush()

    db.add_all(_image_rows(post.id, image_urls or [], image_keys))
    await attach_post_hashtags(db, post.id, hashtags or [])
    await db.flush()

    logger.info("post_created", post_id=post.id, author_id=author_id, channel_id=channel_id)
    created = await get_post(db, post.id)
    if created is None:
        msg = "Post not found"
        raise NotFoundError(msg)
    return created


async def update_post(
    db: AsyncSession,
    post_id: str,
    user_id: str,
    title: str | None = None,
    content: str | None = None,
    hashtags: list[str] | None = None,
) -> Post:
    """Edit title/content; a supplied hashtag list replaces the current one."""
    post = await _get_owned_post(db, post_id, user_id)
    if title is not None:
        post.title = title
    if content is not None:
        post.content = content
    if hashtags is not None:
        await detach_post_hashtags(db, post.id)
        await attach_post_hashtags(db, post.id, hashtags)
    await db.flush()

    logger.info("post_updated", post_id=post.id)
    updated = await get_post(db, post.id)
    if updated is None:
        msg = "Post not found"
        raise NotFoundError(msg)
    return updated


async def delete_post(db: AsyncSession, post_id: str, user_id: str) -> None:
    """Soft-delete a post and release its hashtags, including those on its comments."""
    post = await _get_owned_post(db, post_id, user_id)
    await detach_post_hashtags(db, post.id)
    await detach_post_comment_hashtags(db, post.id)
    post.status = ContentStatus.DELETED.value
    post.deleted_at = utcnow()
    await db.flush()
    logger.info("post_deleted", post_id=post.id)


async def increment_view_count(db: AsyncSession, post_id: str) -> None:
    await db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values(view_count=Post.view_count + 1)
        .execution_options(synchronize_session=False)
    )


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------


async def toggle_like(db: AsyncSession, post_id: str, user_id: str) -> tuple[bool, int]:
    """
    Like or unlike a post. Returns (liked, like_count).

    The counter moves only when a like row was actually inserted or deleted.
    """
    await get_readable_post(db, post_id, user_id)

    removed = await db.execute(
        delete(PostLike)
        .where(PostLike.post_id == post_id, PostLike.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    if removed.rowcount:
        liked, delta = False, -1
    else:
        inserted = await insert_ignore(
            db, PostLike.__table__, {"post_id": post_id, "user_id": user_id}, ["post_id", "user_id"]
        )
        liked, delta = True, (1 if inserted else 0)

    if delta:
        await db.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(like_count=case((Post.like_count + delta < 0, 0), else_=Post.like_count + delta))
            .execution_options(synchronize_session=False)
        )
    like_count = await db.scalar(select(Post.like_count).where(Post.id == post_id))
    return liked, like_count or 0


async def has_user_liked(db: AsyncSession, post_id: str, user_id: str) -> bool:
    result = await db.execute(select(PostLike.id).where(PostLike.post_id == post_id, PostLike.user_id == user_id))
    return result.scalar_one_or_none() is not None


async def liked_post_ids(db: AsyncSession, post_ids: list[str], user_id: str) -> set[str]:
    if not post_ids:
        return set()
    result = await db.execute(
        select(PostLike.post_id).where(PostLike.user_id == user_id, PostLike.post_id.in_(post_ids))
    )
    return set(result.scalars().all())
