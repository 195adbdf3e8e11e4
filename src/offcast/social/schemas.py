"""Pydantic schemas for platform statistics."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field


class YouTubeStats(BaseModel):
    provider: Literal["youtube"] = "youtube"
    subscriber_count: int = 0
    video_count: int = 0
    view_count: int = 0
    channel_id: str
    channel_title: str = ""
    thumbnail_url: str = ""


class TikTokStats(BaseModel):
    provider: Literal["tiktok"] = "tiktok"
    follower_count: int = 0
    following_count: int = 0
    likes_count: int = 0
    video_count: int = 0
    display_name: str = ""
    avatar_url: str = ""


class TwitchStats(BaseModel):
    provider: Literal["twitch"] = "twitch"
    view_count: int = 0
    login: str = ""
    display_name: str = ""
    profile_image: str = ""
    broadcaster_type: str = ""


ProviderStats = Annotated[YouTubeStats | TikTokStats | TwitchStats, Field(discriminator="provider")]


class AllStatsResponse(BaseModel):
    """Stats for every linked platform that answered; the rest stay null."""

    youtube: YouTubeStats | None = None
    tiktok: TikTokStats | None = None
    twitch: TwitchStats | None = None
