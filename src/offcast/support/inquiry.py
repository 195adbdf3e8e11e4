"""Support inquiries from members and guests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from offcast.common.pagination import offset_for
from offcast.db.models import Inquiry
from offcast.errors import BadRequestError, NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

MY_INQUIRIES_LIMIT = 10


async def create_inquiry(
    db: AsyncSession,
    category: str,
    title: str,
    content: str,
    user_id: str | None = None,
    email: str | None = None,
) -> Inquiry:
    """Open an inquiry. Guests must leave an email so support can answer."""
    if user_id is None and not email:
        msg = "Email is required for guest inquiries"
        raise BadRequestError(msg)

    inquiry = Inquiry(user_id=user_id, email=email, category=category, title=title, content=content)
    db.add(inquiry)
    await db.flush()
    logger.info("inquiry_created", inquiry_id=inquiry.id, category=category, guest=user_id is None)
    return inquiry


async def list_my_inquiries(
    db: AsyncSession, user_id: str, page: int = 1, limit: int = MY_INQUIRIES_LIMIT
) -> tuple[list[Inquiry], int]:
    total = await db.scalar(select(func.count()).select_from(Inquiry).where(Inquiry.user_id == user_id))
    result = await db.execute(
        select(Inquiry)
        .where(Inquiry.user_id == user_id)
        .order_by(Inquiry.created_at.desc())
        .offset(offset_for(page, limit))
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0


async def get_inquiry(db: AsyncSession, inquiry_id: str, user_id: str) -> Inquiry:
    """An inquiry visible to its owner only; anyone else gets 404."""
    inquiry = await db.get(Inquiry, inquiry_id)
    if inquiry is None or inquiry.user_id != user_id:
        msg = "Inquiry not found"
        raise NotFoundError(msg)
    return inquiry
