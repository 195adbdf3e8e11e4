"""Channel catalog, live access checks, and the access-grant cache."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import or_, select

from offcast.channels.access import has_access
from offcast.db.models import Channel, ChannelAccess, utcnow
from offcast.db.upsert import insert_for
from offcast.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from offcast.users.service import get_max_subscriber_count, get_user_providers

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

DEFAULT_ACCESS_TTL_HOURS = 24


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


async def find_all(db: AsyncSession) -> list[Channel]:
    result = await db.execute(select(Channel).where(Channel.is_active.is_(True)).order_by(Channel.sort_order))
    return list(result.scalars().all())


async def find_by_id(db: AsyncSession, channel_id: str) -> Channel | None:
    result = await db.execute(select(Channel).where(Channel.id == channel_id))
    return result.scalar_one_or_none()


async def find_by_slug(db: AsyncSession, slug: str) -> Channel | None:
    result = await db.execute(select(Channel).where(Channel.slug == slug))
    return result.scalar_one_or_none()


async def create_channel(
    db: AsyncSession,
    name: str,
    slug: str,
    min_subscribers: int = 0,
    max_subscribers: int | None = None,
    description: str | None = None,
    provider_only: str | None = None,
    sort_order: int = 0,
) -> Channel:
    if max_subscribers is not None and max_subscribers < min_subscribers:
        msg = "max_subscribers must be >= min_subscribers"
        raise BadRequestError(msg)
    if await find_by_slug(db, slug) is not None:
        msg = f"Channel '{slug}' already exists"
        raise ConflictError(msg)

    channel = Channel(
        name=name,
        slug=slug,
        description=description,
        min_subscribers=min_subscribers,
        max_subscribers=max_subscribers,
        provider_only=provider_only,
        sort_order=sort_order,
    )
    db.add(channel)
    await db.flush()
    logger.info("channel_created", channel_id=channel.id, slug=slug)
    return channel


# ---------------------------------------------------------------------------
# Live access
# ---------------------------------------------------------------------------


async def get_accessible_channels(
    db: AsyncSession,
    subscriber_count: int,
    user_providers: list[str] | None = None,
) -> list[Channel]:
    """Active channels whose band contains ``subscriber_count``, ordered by sort order."""
    providers = list(user_providers or [])
    result = await db.execute(
        select(Channel)
        .where(
            Channel.is_active.is_(True),
            Channel.min_subscribers <= subscriber_count,
            or_(Channel.max_subscribers.is_(None), Channel.max_subscribers >= subscriber_count),
            or_(Channel.provider_only.is_(None), Channel.provider_only.in_(providers)),
        )
        .order_by(Channel.sort_order)
    )
    return list(result.scalars().all())


async def get_user_access_context(db: AsyncSession, user_id: str) -> tuple[int, list[str]]:
    """Live (max subscriber count, linked providers) for a user."""
    return await get_max_subscriber_count(db, user_id), await get_user_providers(db, user_id)


async def get_accessible_channels_for_user(db: AsyncSession, user_id: str) -> list[Channel]:
    subscriber_count, providers = await get_user_access_context(db, user_id)
    return await get_accessible_channels(db, subscriber_count, providers)


async def can_access_channel(db: AsyncSession, user_id: str, channel: Channel) -> bool:
    """Recompute eligibility from current account data. Never consults the grant cache."""
    subscriber_count, providers = await get_user_access_context(db, user_id)
    return channel.is_active and has_access(channel, subscriber_count, providers)


async def require_channel_access(db: AsyncSession, user_id: str, channel_id: str) -> Channel:
    """
    Load a channel the user may post in.

    Raises:
        NotFoundError: Unknown or inactive channel.
        ForbiddenError: The user's live subscriber count is outside the band.
    """
    channel = await find_by_id(db, channel_id)
    if channel is None or not channel.is_active:
        msg = "Channel not found"
        raise NotFoundError(msg)
    if not await can_access_channel(db, user_id, channel):
        msg = "You do not have access to this channel"
        raise ForbiddenError(msg)
    return channel


# ---------------------------------------------------------------------------
# Access-grant cache
# ---------------------------------------------------------------------------


async def grant_access(
    db: AsyncSession,
    user_id: str,
    channel_id: str,
    ttl_hours: int = DEFAULT_ACCESS_TTL_HOURS,
) -> None:
    """Create or extend a cached grant."""
    expires_at = utcnow() + timedelta(hours=ttl_hours)
    stmt = insert_for(db, ChannelAccess.__table__).values(
        user_id=user_id,
        channel_id=channel_id,
        expires_at=expires_at,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "channel_id"],
        set_={"expires_at": stmt.excluded.expires_at},
    )
    await db.execute(stmt)


async def refresh_access_by_subscriber_count(
    db: AsyncSession,
    user_id: str,
    subscriber_count: int,
    user_providers: list[str] | None = None,
    ttl_hours: int = DEFAULT_ACCESS_TTL_HOURS,
) -> list[ChannelAccess]:
    """Upsert a grant for every channel currently accessible. Returns the grant rows."""
    channels = await get_accessible_channels(db, subscriber_count, user_providers)
    for channel in channels:
        await grant_access(db, user_id, channel.id, ttl_hours)
    await db.flush()
    logger.info("channel_access_refreshed", user_id=user_id, channels=len(channels))

    if not channels:
        return []
    result = await db.execute(
        select(ChannelAccess)
        .join(Channel, Channel.id == ChannelAccess.channel_id)
        .where(ChannelAccess.user_id == user_id, ChannelAccess.channel_id.in_([c.id for c in channels]))
        .order_by(Channel.sort_order)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def check_access(db: AsyncSession, user_id: str, channel_id: str) -> bool:
    """Whether an unexpired cached grant exists."""
    result = await db.execute(
        select(ChannelAccess.id).where(
            ChannelAccess.user_id == user_id,
            ChannelAccess.channel_id == channel_id,
            ChannelAccess.expires_at > utcnow(),
        )
    )
    return result.scalar_one_or_none() is not None


async def get_user_accesses(db: AsyncSession, user_id: str) -> list[ChannelAccess]:
    """Unexpired grants with their channels loaded."""
    result = await db.execute(
        select(ChannelAccess)
        .join(Channel, Channel.id == ChannelAccess.channel_id)
        .where(ChannelAccess.user_id == user_id, ChannelAccess.expires_at > utcnow())
        .order_by(Channel.sort_order)
    )
    return list(result.scalars().all())
