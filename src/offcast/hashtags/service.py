"""Hashtag normalization, usage bookkeeping, and discovery queries.

``usage_count`` tracks how many live posts and comments carry a tag. It is
only changed inside the caller's transaction, alongside the join rows.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import case, delete, func, select, update

from offcast.db.models import Comment, CommentHashtag, Hashtag, PostHashtag, utcnow
from offcast.db.upsert import insert_for, insert_ignore

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

MAX_HASHTAG_LENGTH = 50
SEARCH_MAX_LIMIT = 20
POPULAR_MAX_LIMIT = 50
TRENDING_WINDOW_HOURS = 24


def normalize_hashtag(name: str) -> str:
    """``"#Gaming "`` -> ``"gaming"``."""
    return name.strip().lstrip("#").strip().lower()


def normalize_hashtags(names: Iterable[str] | None) -> list[str]:
    """Normalize, drop empties and over-long tags, dedupe preserving order."""
    seen: dict[str, None] = {}
    for raw in names or ():
        name = normalize_hashtag(raw)
        if name and len(name) <= MAX_HASHTAG_LENGTH:
            seen.setdefault(name, None)
    return list(seen)


# ---------------------------------------------------------------------------
# Usage bookkeeping
# ---------------------------------------------------------------------------


async def _increment_hashtag(db: AsyncSession, name: str) -> str:
    """Create the tag with usage 1, or bump its usage. Returns the hashtag id."""
    table = Hashtag.__table__
    stmt = insert_for(db, table).values(name=name, usage_count=1)
    stmt = stmt.on_conflict_do_update(
        index_elements=["name"],
        set_={"usage_count": table.c.usage_count + 1},
    )
    await db.execute(stmt)
    hashtag_id = await db.scalar(select(Hashtag.id).where(Hashtag.name == name))
    return str(hashtag_id)


async def _attach(db: AsyncSession, join_model: type, owner_column: str, owner_id: str, names: list[str]) -> None:
    for name in normalize_hashtags(names):
        hashtag_id = await _increment_hashtag(db, name)
        await insert_ignore(
            db,
            join_model.__table__,
            {owner_column: owner_id, "hashtag_id": hashtag_id},
            [owner_column, "hashtag_id"],
        )


async def _detach(db: AsyncSession, join_model: type, owner_column: str, owner_id: str) -> None:
    owner = getattr(join_model, owner_column)
    hashtag_ids = list((await db.execute(select(join_model.hashtag_id).where(owner == owner_id))).scalars().all())
    if not hashtag_ids:
        return
    await db.execute(
        update(Hashtag)
        .where(Hashtag.id.in_(hashtag_ids))
        .values(usage_count=case((Hashtag.usage_count > 0, Hashtag.usage_count - 1), else_=0))
        .execution_options(synchronize_session=False)
    )
    await db.execute(delete(join_model).where(owner == owner_id).execution_options(synchronize_session=False))


async def attach_post_hashtags(db: AsyncSession, post_id: str, names: list[str]) -> None:
    await _attach(db, PostHashtag, "post_id", post_id, names)


async def detach_post_hashtags(db: AsyncSession, post_id: str) -> None:
    """Decrement usage of every tag on the post and drop its join rows."""
    await _detach(db, PostHashtag, "post_id", post_id)


async def attach_comment_hashtags(db: AsyncSession, comment_id: str, names: list[str]) -> None:
    await _attach(db, CommentHashtag, "comment_id", comment_id, names)


async def detach_comment_hashtags(db: AsyncSession, comment_id: str) -> None:
    await _detach(db, CommentHashtag, "comment_id", comment_id)


async def detach_post_comment_hashtags(db: AsyncSession, post_id: str) -> None:
    """Release the tags of every comment under a post, once per comment."""
    tagged = select(CommentHashtag.comment_id).join(Comment, Comment.id == CommentHashtag.comment_id)
    comment_ids = (await db.execute(tagged.where(Comment.post_id == post_id).distinct())).scalars().all()
    for comment_id in comment_ids:
        await detach_comment_hashtags(db, comment_id)


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


async def find_by_name(db: AsyncSession, name: str) -> Hashtag | None:
    result = await db.execute(select(Hashtag).where(Hashtag.name == normalize_hashtag(name)))
    return result.scalar_one_or_none()


async def search(db: AsyncSession, keyword: str, limit: int = 10) -> list[Hashtag]:
    """Prefix match over tags still in use, most used first."""
    prefix = normalize_hashtag(keyword)
    if not prefix:
        return []
    escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    result = await db.execute(
        select(Hashtag)
        .where(Hashtag.name.like(f"{escaped}%", escape="\\"), Hashtag.usage_count > 0)
        .order_by(Hashtag.usage_count.desc(), Hashtag.name)
        .limit(min(max(limit, 1), SEARCH_MAX_LIMIT))
    )
    return list(result.scalars().all())


async def get_popular(db: AsyncSession, limit: int = 10) -> list[Hashtag]:
    result = await db.execute(
        select(Hashtag)
        .where(Hashtag.usage_count > 0)
        .order_by(Hashtag.usage_count.desc(), Hashtag.name)
        .limit(min(max(limit, 1), POPULAR_MAX_LIMIT))
    )
    return list(result.scalars().all())


async def get_trending(db: AsyncSession, limit: int = 10) -> list[tuple[Hashtag, int]]:
    """
    Tags attached to posts most often in the last 24 hours.

    Falls back to all-time popular tags (with their usage counts) when nothing
    was tagged recently.
    """
    limit = min(max(limit, 1), POPULAR_MAX_LIMIT)
    since = utcnow() - timedelta(hours=TRENDING_WINDOW_HOURS)
    recent = func.count(PostHashtag.id).label("recent")
    result = await db.execute(
        select(Hashtag, recent)
        .join(PostHashtag, PostHashtag.hashtag_id == Hashtag.id)
        .where(PostHashtag.created_at >= since, Hashtag.usage_count > 0)
        .group_by(Hashtag.id)
        .order_by(recent.desc(), Hashtag.name)
        .limit(limit)
    )
    rows = [(row[0], int(row[1])) for row in result.all()]
    if rows:
        return rows
    return [(tag, tag.usage_count) for tag in await get_popular(db, limit)]
