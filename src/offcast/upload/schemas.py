"""Pydantic schemas for upload endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class UploadResponse(BaseModel):
    url: str
    key: str


class PresignedUrlRequest(BaseModel):
    mime_type: str
    folder: str = "images"


class PresignedUrlResponse(BaseModel):
    upload_url: str
    key: str
    public_url: str


class DeleteManyRequest(BaseModel):
    keys: list[str] = Field(..., min_length=1, max_length=50)
