import io
from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient
from PIL import Image

from yoyo_mall.server.core.config import StorageConfig
from yoyo_mall.server.main import app
from yoyo_mall.server.services.storage import StorageService, get_storage


def _png(width: int = 64, height: int = 48) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def s3_client(client) -> MagicMock:
    s3_client = MagicMock()
    s3_client.delete_objects.return_value = {"Errors": [{"Key": "mall/temp/b.jpg"}]}
    config = StorageConfig(bucket="shop", base_url="https://cdn.test", root_folder="mall")
    storage = StorageService(config=config, client=s3_client)
    app.dependency_overrides[get_storage] = lambda: storage
    return s3_client


class TestImageUpload:
    async def test_upload_with_thumbnail(self, client: AsyncClient, s3_client, customer_headers):
        response = await client.post(
            "/api/v1/upload/image",
            files=[("files", ("mouse.png", _png(), "image/png"))],
            data={"type": "product", "thumbnail": "true"},
            headers=customer_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Uploaded 1 of 1 files"
        [uploaded] = body["data"]
        assert uploaded["key"].startswith("mall/products/")
        assert uploaded["key"].endswith(".jpg")
        assert uploaded["url"] == f"https://cdn.test/{uploaded['key']}"
        assert uploaded["contentType"] == "image/jpeg"
        assert uploaded["originalName"] == "mouse.png"
        assert uploaded["thumbnail"]["key"].startswith("mall/products/thumbnails/")
        assert s3_client.put_object.call_count == 2
        assert "errors" not in body

    async def test_partial_failure_is_reported(self, client: AsyncClient, s3_client, customer_headers):
        response = await client.post(
            "/api/v1/upload/image",
            files=[
                ("files", ("mouse.png", _png(), "image/png")),
                ("files", ("notes.txt", b"hello", "text/plain")),
            ],
            data={"optimize": "false"},
            headers=customer_headers,
        )

        body = response.json()
        assert response.status_code == 200
        assert body["data"][0]["key"].startswith("mall/temp/")
        assert body["data"][0]["key"].endswith(".png")
        assert body["errors"] == [{"file": "notes.txt", "error": "Unsupported file type: text/plain", "code": "INVALID_FILE_TYPE"}]

    async def test_nothing_uploaded(self, client: AsyncClient, s3_client, customer_headers):
        response = await client.post(
            "/api/v1/upload/image",
            files=[("files", ("notes.txt", b"hello", "text/plain"))],
            headers=customer_headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "UPLOAD_FAILED"
        assert body["details"]["errors"][0]["code"] == "INVALID_FILE_TYPE"
        s3_client.put_object.assert_not_called()

    async def test_requires_login(self, client: AsyncClient, s3_client):
        response = await client.post("/api/v1/upload/image", files=[("files", ("mouse.png", _png(), "image/png"))])
        assert response.status_code == 401

    async def test_upload_constraints(self, client: AsyncClient):
        response = await client.get("/api/v1/upload/image")

        data = response.json()["data"]
        assert "image/webp" in data["allowedTypes"]
        assert data["maxFileSize"] == 10 * 1024 * 1024
        assert "product" in data["uploadTypes"]


class TestAvatar:
    async def test_avatar_replaces_previous(self, client: AsyncClient, s3_client, session, customer, customer_headers):
        customer.avatar = "https://cdn.test/mall/avatars/old.webp"
        session.add(customer)
        await session.commit()

        response = await client.post(
            "/api/v1/upload/avatar", files={"file": ("me.png", _png(800, 600), "image/png")}, headers=customer_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["key"].startswith(f"mall/avatars/avatar_{customer.id}_")
        assert data["contentType"] == "image/webp"
        s3_client.delete_object.assert_called_once_with(Bucket="shop", Key="mall/avatars/old.webp")
        await session.refresh(customer)
        assert customer.avatar == data["url"]

    async def test_avatar_must_be_image(self, client: AsyncClient, s3_client, customer_headers):
        response = await client.post(
            "/api/v1/upload/avatar", files={"file": ("me.txt", b"hello", "text/plain")}, headers=customer_headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FILE_TYPE"


class TestDelete:
    async def test_delete_single_key(self, client: AsyncClient, s3_client, customer_headers):
        response = await client.request(
            "DELETE", "/api/v1/upload/delete", json={"key": "mall/temp/a.jpg"}, headers=customer_headers
        )

        assert response.status_code == 200
        assert response.json()["results"] == {"mall/temp/a.jpg": True}
        s3_client.delete_object.assert_called_once_with(Bucket="shop", Key="mall/temp/a.jpg")

    async def test_delete_many_via_post(self, client: AsyncClient, s3_client, customer_headers):
        response = await client.post(
            "/api/v1/upload/delete", json={"keys": ["mall/temp/a.jpg", "mall/temp/b.jpg"]}, headers=customer_headers
        )

        body = response.json()
        assert body["results"] == {"mall/temp/a.jpg": True, "mall/temp/b.jpg": False}
        assert body["message"] == "Deleted 1 of 2 files"

    async def test_key_is_required(self, client: AsyncClient, s3_client, customer_headers):
        response = await client.post("/api/v1/upload/delete", json={}, headers=customer_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_KEY"
