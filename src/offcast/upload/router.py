"""Upload router: all /api/v1/upload/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile

from offcast.auth.dependencies import get_current_user
from offcast.config import Settings, get_settings
from offcast.db.models import User
from offcast.errors import BadRequestError
from offcast.upload.schemas import DeleteManyRequest, PresignedUrlRequest, PresignedUrlResponse, UploadResponse
from offcast.upload.service import DEFAULT_FOLDER, ImageStorage, get_storage, validate_file_size, validate_mime_type

router = APIRouter(prefix="/api/v1/upload", tags=["Upload"])


async def _read(file: UploadFile, storage: ImageStorage) -> tuple[bytes, str]:
    mime_type = file.content_type or ""
    validate_mime_type(mime_type)
    if file.size is not None:
        validate_file_size(file.size, storage.max_bytes)
    return await file.read(), mime_type


@router.post("/image", response_model=UploadResponse, status_code=201)
async def upload_image(
    file: UploadFile = File(...),
    folder: str = Form(DEFAULT_FOLDER),
    _user: User = Depends(get_current_user),
    storage: ImageStorage = Depends(get_storage),
) -> UploadResponse:
    data, mime_type = await _read(file, storage)
    return UploadResponse(**await storage.upload_image(data, mime_type, folder))


@router.post("/images", response_model=list[UploadResponse], status_code=201)
async def upload_images(
    files: list[UploadFile] = File(...),
    folder: str = Form(DEFAULT_FOLDER),
    _user: User = Depends(get_current_user),
    storage: ImageStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> list[UploadResponse]:
    """Upload several images; every file is validated before any is stored."""
    if len(files) > settings.upload_max_files:
        msg = f"At most {settings.upload_max_files} files per request"
        raise BadRequestError(msg)
    payloads = [await _read(f, storage) for f in files]
    return [UploadResponse(**await storage.upload_image(data, mime, folder)) for data, mime in payloads]


@router.post("/presigned-url", response_model=PresignedUrlResponse)
async def presigned_url(
    body: PresignedUrlRequest,
    _user: User = Depends(get_current_user),
    storage: ImageStorage = Depends(get_storage),
) -> PresignedUrlResponse:
    return PresignedUrlResponse(**await storage.create_presigned_upload(body.mime_type, body.folder))


@router.post("/delete-many", status_code=204)
async def delete_many(
    body: DeleteManyRequest,
    _user: User = Depends(get_current_user),
    storage: ImageStorage = Depends(get_storage),
) -> None:
    await storage.delete_images(body.keys)


@router.delete("/{key:path}", status_code=204)
async def delete_image(
    key: str,
    _user: User = Depends(get_current_user),
    storage: ImageStorage = Depends(get_storage),
) -> None:
    await storage.delete_image(key)
