"""Default channel catalog: open topic channels plus strictly banded lounges."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from offcast.db.models import Channel, Provider
from offcast.db.upsert import insert_for

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

CHANNEL_SEED_DATA: list[dict[str, Any]] = [
    {
        "name": "General",
        "slug": "free",
        "description": "Open space for everyone to chat freely",
        "min_subscribers": 0,
        "max_subscribers": None,
        "sort_order": 0,
    },
    # Subscriber lounges (bands do not overlap)
    {
        "name": "100+ Lounge",
        "slug": "lounge-100",
        "description": "For creators with 100 to 999 subscribers",
        "min_subscribers": 100,
        "max_subscribers": 999,
        "sort_order": 1,
    },
    {
        "name": "1K+ Lounge",
        "slug": "lounge-1k",
        "description": "For creators with 1,000 to 9,999 subscribers",
        "min_subscribers": 1_000,
        "max_subscribers": 9_999,
        "sort_order": 2,
    },
    {
        "name": "10K+ Lounge",
        "slug": "lounge-10k",
        "description": "For creators with 10,000 to 99,999 subscribers",
        "min_subscribers": 10_000,
        "max_subscribers": 99_999,
        "sort_order": 3,
    },
    {
        "name": "100K+ Lounge",
        "slug": "lounge-100k",
        "description": "For creators with 100,000 to 999,999 subscribers",
        "min_subscribers": 100_000,
        "max_subscribers": 999_999,
        "sort_order": 4,
    },
    {
        "name": "1M+ Lounge",
        "slug": "lounge-1m",
        "description": "For creators with 1 million+ subscribers",
        "min_subscribers": 1_000_000,
        "max_subscribers": None,
        "sort_order": 5,
    },
    # Platform channels
    {
        "name": "YouTube Creators",
        "slug": "youtube",
        "description": "Exclusive channel for YouTube creators",
        "min_subscribers": 0,
        "max_subscribers": None,
        "provider_only": Provider.YOUTUBE.value,
        "sort_order": 6,
    },
    {
        "name": "TikTok Creators",
        "slug": "tiktok",
        "description": "Exclusive channel for TikTok creators",
        "min_subscribers": 0,
        "max_subscribers": None,
        "provider_only": Provider.TIKTOK.value,
        "sort_order": 7,
    },
    {
        "name": "Twitch Streamers",
        "slug": "twitch",
        "description": "Exclusive channel for Twitch streamers",
        "min_subscribers": 0,
        "max_subscribers": None,
        "provider_only": Provider.TWITCH.value,
        "sort_order": 8,
    },
    # Content categories
    {"name": "Gaming", "slug": "gaming", "description": "PC, console, and mobile gaming content", "sort_order": 10},
    {"name": "Food & Cooking", "slug": "food", "description": "Mukbang, cooking, and food reviews", "sort_order": 11},
    {"name": "Lifestyle & Vlog", "slug": "vlog", "description": "Daily life sharing and vlogs", "sort_order": 12},
    {"name": "Music & Covers", "slug": "music", "description": "Music, covers, and composition", "sort_order": 13},
    {"name": "Beauty & Fashion", "slug": "beauty", "description": "Beauty, fashion, and styling", "sort_order": 14},
    # General interest
    {
        "name": "Finance & Investing",
        "slug": "investment",
        "description": "Stocks, crypto, real estate, and money talk",
        "sort_order": 20,
    },
    {"name": "Health & Fitness", "slug": "health", "description": "Fitness, diet, and health", "sort_order": 21},
    {
        "name": "Travel & Restaurants",
        "slug": "travel",
        "description": "Travel destinations and restaurant reviews",
        "sort_order": 22,
    },
    {"name": "Tech & Gadgets", "slug": "tech", "description": "Electronics, apps, and tech news", "sort_order": 23},
    {"name": "Off-Topic", "slug": "talk", "description": "Casual chat, advice, and open discussions", "sort_order": 24},
]


async def seed_default_channels(db: AsyncSession) -> int:
    """Insert any missing default channels (matched by slug). Returns how many were created."""
    created = 0
    for channel_data in CHANNEL_SEED_DATA:
        values = {"min_subscribers": 0, "max_subscribers": None, "provider_only": None, **channel_data}
        stmt = insert_for(db, Channel.__table__).values(**values).on_conflict_do_nothing(index_elements=["slug"])
        result = await db.execute(stmt)
        created += result.rowcount or 0
    await db.flush()
    if created:
        logger.info("channels_seeded", created=created)
    return created
