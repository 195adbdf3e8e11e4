"""Channel router: all /api/v1/channels/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from offcast.auth.dependencies import get_admin_user, get_current_user
from offcast.channels import service
from offcast.channels.access import has_access
from offcast.channels.schemas import (
    AccessibleChannelsResponse,
    ChannelAccessResponse,
    ChannelCreateRequest,
    ChannelResponse,
    CheckAccessResponse,
    SeedResponse,
)
from offcast.channels.seed import seed_default_channels
from offcast.config import Settings, get_settings
from offcast.database import get_session
from offcast.db.models import Channel, User

router = APIRouter(prefix="/api/v1/channels", tags=["Channels"])


def channel_response(channel: Channel) -> ChannelResponse:
    return ChannelResponse(
        id=channel.id,
        name=channel.name,
        slug=channel.slug,
        description=channel.description,
        min_subscribers=channel.min_subscribers,
        max_subscribers=channel.max_subscribers,
        provider_only=channel.provider_only,
        sort_order=channel.sort_order,
    )


# ---------------------------------------------------------------------------
# Public catalog
# ---------------------------------------------------------------------------


@router.get("", response_model=list[ChannelResponse])
async def list_channels(db: AsyncSession = Depends(get_session)) -> list[ChannelResponse]:
    """All active channels in display order."""
    return [channel_response(c) for c in await service.find_all(db)]


# ---------------------------------------------------------------------------
# Authenticated
# ---------------------------------------------------------------------------


@router.get("/accessible", response_model=AccessibleChannelsResponse)
async def accessible_channels(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AccessibleChannelsResponse:
    """Channels the user can access right now, from live subscriber counts."""
    subscriber_count, providers = await service.get_user_access_context(db, user.id)
    channels = await service.get_accessible_channels(db, subscriber_count, providers)
    return AccessibleChannelsResponse(
        subscriber_count=subscriber_count,
        channels=[channel_response(c) for c in channels],
    )


@router.get("/my-accesses", response_model=list[ChannelAccessResponse])
async def my_accesses(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[ChannelAccessResponse]:
    """Unexpired cached grants."""
    accesses = await service.get_user_accesses(db, user.id)
    return [ChannelAccessResponse(channel=channel_response(a.channel), expires_at=a.expires_at) for a in accesses]


@router.post("/refresh-access", response_model=list[ChannelAccessResponse])
async def refresh_access(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> list[ChannelAccessResponse]:
    """Rebuild the grant cache from the user's current subscriber count."""
    subscriber_count, providers = await service.get_user_access_context(db, user.id)
    accesses = await service.refresh_access_by_subscriber_count(
        db, user.id, subscriber_count, providers, ttl_hours=settings.channel_access_ttl_hours
    )
    await db.commit()
    return [ChannelAccessResponse(channel=channel_response(a.channel), expires_at=a.expires_at) for a in accesses]


@router.post("", response_model=ChannelResponse, status_code=201)
async def create_channel(
    body: ChannelCreateRequest,
    _admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_session),
) -> ChannelResponse:
    channel = await service.create_channel(
        db,
        name=body.name,
        slug=body.slug,
        min_subscribers=body.min_subscribers,
        max_subscribers=body.max_subscribers,
        description=body.description,
        provider_only=body.provider_only.value if body.provider_only else None,
        sort_order=body.sort_order,
    )
    await db.commit()
    return channel_response(channel)


@router.post("/seed", response_model=SeedResponse)
async def seed_channels(
    _admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_session),
) -> SeedResponse:
    """Insert missing default channels (idempotent)."""
    created = await seed_default_channels(db)
    await db.commit()
    return SeedResponse(created=created)


@router.get("/{channel_id}/check-access", response_model=CheckAccessResponse)
async def check_access(
    channel_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CheckAccessResponse:
    """Live eligibility plus whether a cached grant exists."""
    channel = await service.find_by_id(db, channel_id)
    if channel is None:
        raise HTTPException(status_code=404, detail="Channel not found")
    subscriber_count, providers = await service.get_user_access_context(db, user.id)
    return CheckAccessResponse(
        channel_id=channel.id,
        has_access=channel.is_active and has_access(channel, subscriber_count, providers),
        cached=await service.check_access(db, user.id, channel.id),
    )


@router.get("/{slug}", response_model=ChannelResponse)
async def get_channel(slug: str, db: AsyncSession = Depends(get_session)) -> ChannelResponse:
    channel = await service.find_by_slug(db, slug)
    if channel is None or not channel.is_active:
        raise HTTPException(status_code=404, detail="Channel not found")
    return channel_response(channel)
