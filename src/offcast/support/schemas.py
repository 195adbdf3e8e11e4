"""Pydantic schemas for FAQ and inquiry endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from offcast.db.models import InquiryCategory


class FaqCategoryResponse(BaseModel):
    value: str
    label: str


class FaqResponse(BaseModel):
    id: str
    category: str
    question: str
    answer: str
    sort_order: int


class InquiryCreateRequest(BaseModel):
    category: InquiryCategory = InquiryCategory.GENERAL
    title: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1, max_length=2000)
    email: EmailStr | None = None


class InquiryResponse(BaseModel):
    id: str
    category: str
    title: str
    content: str
    email: str | None = None
    status: str
    answer: str | None = None
    answered_at: datetime | None = None
    created_at: datetime
