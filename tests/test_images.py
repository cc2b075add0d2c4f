"""Хранение изображений: inline (base64), Cloudinary, временные файлы загрузок."""

import hashlib
import io
from pathlib import Path

import httpx
import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from rescue.core.errors import NotFoundError, StorageError, ValidationError
from rescue.services.catalog import AnimalService
from rescue.services.images import (
    CloudinaryImageStore,
    ImageOwner,
    InlineImageStore,
    build_image_store,
    staged_upload,
)
from tests.support import PNG_BYTES


def _upload(content: bytes, filename: str = "photo.png", content_type: str = "image/png") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def cloud_settings(test_settings):
    return test_settings.model_copy(
        update={
            "IMAGE_STORAGE": "cloudinary",
            "CLOUDINARY_CLOUD_NAME": "demo",
            "CLOUDINARY_API_KEY": "key",
            "CLOUDINARY_API_SECRET": "secret",
        }
    )


async def test_inline_store_round_trip(session_factory, image_store):
    async with session_factory() as session:
        animal = await AnimalService(session, image_store).create(
            title="Rex",
            description="Good boy",
            price="10",
            payments='["PayPal"]',
            image=PNG_BYTES,
            content_type="image/png",
        )

    assert animal.image == f"/api/image/{animal.id}"
    data, content_type = await image_store.resolve(animal.image)
    assert data == PNG_BYTES
    assert content_type == "image/png"


async def test_inline_resolve_unknown_record(image_store):
    with pytest.raises(NotFoundError):
        await image_store.resolve("/api/news-image/nope")
    with pytest.raises(NotFoundError):
        await image_store.resolve("https://example.com/cat.png")


async def test_cloudinary_store_and_resolve(cloud_settings):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "POST":
            return httpx.Response(200, json={"secure_url": "https://res.cloudinary.com/demo/gift-cards/abc.png"})
        return httpx.Response(200, content=PNG_BYTES, headers={"content-type": "image/png"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        store = CloudinaryImageStore(cloud_settings, client=client)
        stored = await store.store(PNG_BYTES, "image/png", ImageOwner("giftcard", "abc"))
        data, content_type = await store.resolve(stored.ref)

    assert stored.ref == "https://res.cloudinary.com/demo/gift-cards/abc.png"
    assert stored.encoded is None
    assert data == PNG_BYTES
    assert content_type == "image/png"

    upload = requests[0]
    assert str(upload.url) == "https://api.cloudinary.com/v1_1/demo/image/upload"
    body = upload.content
    assert b'name="folder"' in body and b"gift-cards" in body
    assert b'name="signature"' in body


async def test_cloudinary_upstream_failure_raises_storage_error(cloud_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, json={"error": {"message": "bad gateway"}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        store = CloudinaryImageStore(cloud_settings, client=client)
        with pytest.raises(StorageError):
            await store.store(PNG_BYTES, "image/png", ImageOwner("animal", "1"))
        with pytest.raises(StorageError):
            await store.resolve("https://res.cloudinary.com/demo/missing.png")


async def test_cloudinary_not_configured(test_settings):
    store = CloudinaryImageStore(test_settings.model_copy(update={"CLOUDINARY_API_SECRET": ""}))

    with pytest.raises(StorageError):
        await store.store(PNG_BYTES, "image/png", ImageOwner("news", "1"))


def test_cloudinary_signature(cloud_settings):
    store = CloudinaryImageStore(cloud_settings)
    expected = hashlib.sha1(b"folder=animals&timestamp=1700000000secret").hexdigest()

    assert store.sign({"timestamp": "1700000000", "folder": "animals"}) == expected


async def test_staged_upload_removes_temp_file(test_settings):
    async with staged_upload(_upload(PNG_BYTES), test_settings, field="image") as staged:
        path = staged.path
        assert path.exists()
        assert staged.read_bytes() == PNG_BYTES
        assert staged.content_type == "image/png"
        assert staged.size == len(PNG_BYTES)

    assert not path.exists()


async def test_staged_upload_removes_temp_file_on_error(test_settings):
    with pytest.raises(RuntimeError):
        async with staged_upload(_upload(PNG_BYTES), test_settings, field="image"):
            raise RuntimeError("storage down")

    assert not any(Path(test_settings.UPLOAD_TMP_DIR).iterdir())


async def test_staged_upload_validation(test_settings):
    with pytest.raises(ValidationError):
        async with staged_upload(None, test_settings, field="image"):
            pass
    with pytest.raises(ValidationError):
        async with staged_upload(_upload(b""), test_settings, field="image"):
            pass

    small = test_settings.model_copy(update={"MAX_UPLOAD_SIZE": 10})
    with pytest.raises(ValidationError):
        async with staged_upload(_upload(PNG_BYTES), small, field="image"):
            pass
    assert not any(Path(test_settings.UPLOAD_TMP_DIR).iterdir())


def test_build_image_store(test_settings, cloud_settings, session_factory):
    assert isinstance(build_image_store(test_settings, session_factory), InlineImageStore)
    assert isinstance(build_image_store(cloud_settings, session_factory), CloudinaryImageStore)
    with pytest.raises(ValueError):
        build_image_store(test_settings.model_copy(update={"IMAGE_STORAGE": "s3"}), session_factory)
