"""Image upload tests against a mocked S3 client."""

import re
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from offcast.config import Settings, get_settings
from offcast.errors import BadRequestError
from offcast.main import create_app
from offcast.upload.service import ImageStorage, get_storage

PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 64


@pytest.fixture
def s3() -> AsyncMock:
    client = AsyncMock()
    client.generate_presigned_url.return_value = "https://signed.example/put"
    return client


@pytest.fixture
def storage(s3) -> ImageStorage:
    session = MagicMock()
    session.client.return_value.__aenter__.return_value = s3
    return ImageStorage(Settings(upload_max_bytes=1024, cdn_url=""), session=session)


@pytest_asyncio.fixture
async def upload_client(db, storage):
    app = create_app()
    app.dependency_overrides[get_storage] = lambda: storage
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


class TestStorage:
    async def test_upload_stores_under_folder(self, storage, s3):
        result = await storage.upload_image(PNG, "image/png", "posts")
        assert re.fullmatch(r"posts/[0-9a-f-]{36}\.png", result["key"])
        assert result["url"] == f"https://offcast-images.s3.ap-northeast-2.amazonaws.com/{result['key']}"
        s3.put_object.assert_awaited_once()
        assert s3.put_object.await_args.kwargs["ContentType"] == "image/png"

    async def test_unsupported_type(self, storage, s3):
        with pytest.raises(BadRequestError):
            await storage.upload_image(b"x", "application/pdf")
        s3.put_object.assert_not_awaited()

    async def test_oversize(self, storage):
        with pytest.raises(BadRequestError, match="too large"):
            await storage.upload_image(b"0" * 2048, "image/jpeg")

    async def test_folder_traversal_rejected(self, storage):
        with pytest.raises(BadRequestError):
            await storage.upload_image(PNG, "image/png", "../etc")

    def test_cdn_url(self):
        storage = ImageStorage(Settings(cdn_url="https://cdn.offcast.example/"), session=MagicMock())
        assert storage.public_url("posts/a.png") == "https://cdn.offcast.example/posts/a.png"

    async def test_presigned_upload(self, storage, s3):
        result = await storage.create_presigned_upload("image/webp", "comments")
        assert result["upload_url"] == "https://signed.example/put"
        assert result["key"].startswith("comments/") and result["key"].endswith(".webp")
        assert s3.generate_presigned_url.await_args.kwargs["ExpiresIn"] == 300

    async def test_delete_many(self, storage, s3):
        await storage.delete_images(["a.png", "b.png"])
        assert s3.delete_object.await_count == 2


class TestUploadEndpoints:
    async def test_requires_auth(self, upload_client):
        response = await upload_client.post("/api/v1/upload/image", files={"file": ("a.png", PNG, "image/png")})
        assert response.status_code == 401

    async def test_single_image(self, upload_client, make_user, auth_headers):
        user = await make_user()
        response = await upload_client.post(
            "/api/v1/upload/image",
            files={"file": ("a.png", PNG, "image/png")},
            data={"folder": "posts"},
            headers=auth_headers(user),
        )
        assert response.status_code == 201
        assert response.json()["key"].startswith("posts/")

    async def test_rejects_unsupported_type(self, upload_client, make_user, auth_headers):
        user = await make_user()
        response = await upload_client.post(
            "/api/v1/upload/image",
            files={"file": ("a.txt", b"hello", "text/plain")},
            headers=auth_headers(user),
        )
        assert response.status_code == 400

    async def test_too_many_files(self, upload_client, make_user, auth_headers):
        user = await make_user()
        files = [("files", (f"{i}.png", PNG, "image/png")) for i in range(get_settings().upload_max_files + 1)]
        response = await upload_client.post("/api/v1/upload/images", files=files, headers=auth_headers(user))
        assert response.status_code == 400

    async def test_presigned_and_delete(self, upload_client, make_user, auth_headers, s3):
        user = await make_user()
        headers = auth_headers(user)
        presigned = await upload_client.post(
            "/api/v1/upload/presigned-url", json={"mime_type": "image/jpeg"}, headers=headers
        )
        assert presigned.status_code == 200
        key = presigned.json()["key"]

        deleted = await upload_client.delete(f"/api/v1/upload/{key}", headers=headers)
        assert deleted.status_code == 204
        assert s3.delete_object.await_args.kwargs["Key"] == key
