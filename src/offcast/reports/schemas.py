"""Pydantic schemas for report endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from offcast.db.models import ReportReason, ReportTargetType


class ReportCreateRequest(BaseModel):
    target_type: ReportTargetType
    post_id: str | None = None
    comment_id: str | None = None
    target_user_id: str | None = None
    reason: ReportReason
    detail: str | None = Field(None, max_length=1000)


class ReportResponse(BaseModel):
    id: str
    target_type: str
    target_id: str
    reason: str
    detail: str | None = None
    status: str
    created_at: datetime
