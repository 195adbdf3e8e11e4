"""Pydantic schemas for the app version endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

VERSION_PATTERN = r"^\d+(\.\d+){0,3}$"


class VersionInfoResponse(BaseModel):
    current_version: str
    min_version: str
    is_force_update: bool
    description: str | None = None


class CompatibilityResponse(BaseModel):
    is_compatible: bool
    needs_update: bool
    is_force_update: bool
    latest_version: str
    min_version: str


class AppVersionCreateRequest(BaseModel):
    version: str = Field(..., max_length=32, pattern=VERSION_PATTERN)
    description: str | None = Field(None, max_length=1000)
    is_forced: bool = False
    min_version: str | None = Field(None, max_length=32, pattern=VERSION_PATTERN)


class AppVersionResponse(BaseModel):
    id: str
    version: str
    min_version: str | None = None
    is_forced: bool
    description: str | None = None
    created_at: datetime
