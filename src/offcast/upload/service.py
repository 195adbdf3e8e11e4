"""S3 image storage.

Uploads go to ``<folder>/<uuid>.<ext>`` in the configured bucket. Objects are
served from the CDN when ``cdn_url`` is set, otherwise from the bucket's
public S3 endpoint.
"""

from __future__ import annotations

import asyncio
import re
import uuid
from typing import Any

import aioboto3
import structlog

from offcast.config import Settings, get_settings
from offcast.errors import BadRequestError

logger = structlog.get_logger()

MIME_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}
ALLOWED_MIME_TYPES = tuple(MIME_EXTENSIONS)
DEFAULT_FOLDER = "images"

_FOLDER_RE = re.compile(r"^[A-Za-z0-9_-]+(/[A-Za-z0-9_-]+)*$")


def validate_mime_type(mime_type: str) -> None:
    if mime_type not in MIME_EXTENSIONS:
        msg = f"Unsupported image type. Allowed: {', '.join(ALLOWED_MIME_TYPES)}"
        raise BadRequestError(msg)


def validate_file_size(size: int, max_bytes: int) -> None:
    if size > max_bytes:
        msg = f"File is too large. Maximum size is {max_bytes // (1024 * 1024)}MB"
        raise BadRequestError(msg)


def normalize_folder(folder: str | None) -> str:
    """Strip slashes; reject anything that is not a plain path of word segments."""
    folder = (folder or DEFAULT_FOLDER).strip().strip("/")
    if not folder:
        return DEFAULT_FOLDER
    if not _FOLDER_RE.match(folder):
        msg = "Invalid folder name"
        raise BadRequestError(msg)
    return folder


def build_key(folder: str, mime_type: str) -> str:
    return f"{normalize_folder(folder)}/{uuid.uuid4()}.{MIME_EXTENSIONS[mime_type]}"


class ImageStorage:
    """Thin async wrapper around one S3 bucket."""

    def __init__(self, settings: Settings, session: Any | None = None) -> None:  # noqa: ANN401
        self.bucket = settings.aws_s3_bucket
        self.region = settings.aws_region
        self.cdn_url = settings.cdn_url.rstrip("/")
        self.max_bytes = settings.upload_max_bytes
        self.upload_expires_in = settings.presigned_url_expire_seconds
        self.session = session or aioboto3.Session(
            aws_access_key_id=settings.aws_access_key_id or None,
            aws_secret_access_key=settings.aws_secret_access_key or None,
            region_name=settings.aws_region,
        )

    def _client(self) -> Any:  # noqa: ANN401
        return self.session.client("s3", region_name=self.region)

    def public_url(self, key: str) -> str:
        if self.cdn_url:
            return f"{self.cdn_url}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def upload_image(self, data: bytes, mime_type: str, folder: str = DEFAULT_FOLDER) -> dict[str, str]:
        """Store one image and return its ``url`` and ``key``."""
        validate_mime_type(mime_type)
        validate_file_size(len(data), self.max_bytes)
        key = build_key(folder, mime_type)

        async with self._client() as s3:
            await s3.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=mime_type)

        logger.info("image_uploaded", key=key, size=len(data), content_type=mime_type)
        return {"url": self.public_url(key), "key": key}

    async def create_presigned_upload(
        self, mime_type: str, folder: str = DEFAULT_FOLDER, expires_in: int | None = None
    ) -> dict[str, str]:
        """A short-lived PUT URL the client can upload to directly."""
        validate_mime_type(mime_type)
        key = build_key(folder, mime_type)

        async with self._client() as s3:
            upload_url = await s3.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": mime_type},
                ExpiresIn=expires_in or self.upload_expires_in,
            )

        return {"upload_url": upload_url, "key": key, "public_url": self.public_url(key)}

    async def delete_image(self, key: str) -> None:
        async with self._client() as s3:
            await s3.delete_object(Bucket=self.bucket, Key=key)
        logger.info("image_deleted", key=key)

    async def delete_images(self, keys: list[str]) -> None:
        await asyncio.gather(*(self.delete_image(key) for key in keys))


def get_storage() -> ImageStorage:
    """FastAPI dependency; overridden in tests."""
    return ImageStorage(get_settings())
