"""User blocks.

Blocking hides the blocked user's posts and comments from the blocker's
listings. Block and unblock are single conditional statements guarded by the
(blocker, blocked) unique key, so concurrent duplicates resolve cleanly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, func, select

from offcast.common.pagination import offset_for
from offcast.db.models import UserBlock
from offcast.db.upsert import insert_ignore
from offcast.errors import BadRequestError, ConflictError, NotFoundError
from offcast.users.service import get_active_user

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def block_user(db: AsyncSession, blocker_id: str, blocked_user_id: str) -> UserBlock:
    if blocker_id == blocked_user_id:
        msg = "You cannot block yourself"
        raise BadRequestError(msg)
    if await get_active_user(db, blocked_user_id) is None:
        msg = "User not found"
        raise NotFoundError(msg)

    inserted = await insert_ignore(
        db,
        UserBlock.__table__,
        {"blocker_id": blocker_id, "blocked_user_id": blocked_user_id},
        ["blocker_id", "blocked_user_id"],
    )
    if not inserted:
        msg = "User is already blocked"
        raise ConflictError(msg)

    block = await db.scalar(
        select(UserBlock).where(UserBlock.blocker_id == blocker_id, UserBlock.blocked_user_id == blocked_user_id)
    )
    if block is None:
        msg = "Block not found"
        raise NotFoundError(msg)
    logger.info("user_blocked", blocker_id=blocker_id, blocked_user_id=blocked_user_id)
    return block


async def unblock_user(db: AsyncSession, blocker_id: str, blocked_user_id: str) -> None:
    result = await db.execute(
        delete(UserBlock)
        .where(UserBlock.blocker_id == blocker_id, UserBlock.blocked_user_id == blocked_user_id)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        msg = "User is not blocked"
        raise NotFoundError(msg)
    logger.info("user_unblocked", blocker_id=blocker_id, blocked_user_id=blocked_user_id)


async def is_blocked(db: AsyncSession, blocker_id: str, blocked_user_id: str) -> bool:
    result = await db.execute(
        select(UserBlock.id).where(UserBlock.blocker_id == blocker_id, UserBlock.blocked_user_id == blocked_user_id)
    )
    return result.scalar_one_or_none() is not None


async def get_blocked_user_ids(db: AsyncSession, blocker_id: str) -> list[str]:
    result = await db.execute(select(UserBlock.blocked_user_id).where(UserBlock.blocker_id == blocker_id))
    return list(result.scalars().all())


async def get_blocked_users(
    db: AsyncSession, blocker_id: str, page: int = 1, limit: int = 20
) -> tuple[list[UserBlock], int]:
    """Newest blocks first, with the blocked user loaded."""
    total = await db.scalar(select(func.count()).select_from(UserBlock).where(UserBlock.blocker_id == blocker_id))
    result = await db.execute(
        select(UserBlock)
        .where(UserBlock.blocker_id == blocker_id)
        .order_by(UserBlock.created_at.desc())
        .offset(offset_for(page, limit))
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0
