"""
Хранение изображений.

Две стратегии с одним интерфейсом, выбираются настройкой IMAGE_STORAGE:

- cloudinary: файл загружается на внешний хостинг, в записи хранится
  публичный URL (secure_url);
- inline: байты кодируются в base64 и хранятся в самой записи,
  отдаются через /api/image/<id>, /api/news-image/<id>, /api/giftcard-image/<id>.

Загруженный файл сначала пишется во временный каталог (staged_upload)
и удаляется при любом исходе запроса.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import mimetypes
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional, Protocol

import httpx
from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rescue.core.config import Settings
from rescue.core.errors import NotFoundError, StorageError, ValidationError
from rescue.db.models import Animal, News, PaymentSubmission

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE = 64 * 1024
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class ImageKind:
    name: str
    route_prefix: str
    model: type
    folder: str


IMAGE_KINDS: dict[str, ImageKind] = {
    "animal": ImageKind("animal", "/api/image/", Animal, "animals"),
    "news": ImageKind("news", "/api/news-image/", News, "news"),
    "giftcard": ImageKind("giftcard", "/api/giftcard-image/", PaymentSubmission, "gift-cards"),
}


@dataclass(frozen=True)
class ImageOwner:
    """Запись, которой принадлежит изображение."""

    kind: str
    record_id: str

    @property
    def kind_info(self) -> ImageKind:
        return IMAGE_KINDS[self.kind]


@dataclass(frozen=True)
class StoredImage:
    """Результат сохранения: то, что кладётся в поля записи."""

    ref: str
    content_type: str
    encoded: Optional[str] = None

    def apply_to(self, record) -> None:
        record.image = self.ref
        record.image_type = self.content_type
        record.image_data = self.encoded


@dataclass(frozen=True)
class StagedUpload:
    path: Path
    filename: str
    content_type: str
    size: int

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


class ImageStore(Protocol):
    async def store(self, data: bytes, content_type: str, owner: ImageOwner) -> StoredImage:
        ...

    async def resolve(self, ref: str) -> tuple[bytes, str]:
        ...


def _guess_content_type(upload: UploadFile) -> str:
    if upload.content_type and upload.content_type != DEFAULT_CONTENT_TYPE:
        return upload.content_type
    guessed, _ = mimetypes.guess_type(upload.filename or "")
    return guessed or upload.content_type or DEFAULT_CONTENT_TYPE


@asynccontextmanager
async def staged_upload(
    upload: Optional[UploadFile],
    config: Settings,
    *,
    field: str,
) -> AsyncIterator[StagedUpload]:
    """
    Сохраняет загруженный файл во временный каталог и гарантированно удаляет его.

    Raises:
        ValidationError: файл не передан, пустой или больше MAX_UPLOAD_SIZE
    """
    if upload is None or not upload.filename:
        raise ValidationError(f"Missing required field: {field}")

    tmp_dir = Path(config.UPLOAD_TMP_DIR)
    tmp_dir.mkdir(parents=True, exist_ok=True)
    path = tmp_dir / uuid.uuid4().hex

    try:
        size = 0
        with path.open("wb") as fh:
            while True:
                chunk = await upload.read(UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > config.MAX_UPLOAD_SIZE:
                    raise ValidationError(
                        f"File {field} exceeds the {config.MAX_UPLOAD_SIZE} byte limit"
                    )
                fh.write(chunk)
        if size == 0:
            raise ValidationError(f"Uploaded file {field} is empty")

        yield StagedUpload(
            path=path,
            filename=upload.filename,
            content_type=_guess_content_type(upload),
            size=size,
        )
    finally:
        path.unlink(missing_ok=True)
        logger.debug("Temp upload %s removed", path)


async def load_inline_image(session: AsyncSession, kind: str, record_id: str) -> tuple[bytes, str]:
    """Достаёт base64-изображение из записи и декодирует его."""
    info = IMAGE_KINDS.get(kind)
    if info is None:
        raise NotFoundError("Image not found")

    model = info.model
    result = await session.execute(
        select(model.image_data, model.image_type).where(model.id == record_id)
    )
    row = result.one_or_none()
    if row is None or not row.image_data:
        raise NotFoundError("Image not found")

    try:
        data = base64.b64decode(row.image_data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise StorageError(f"Stored image is corrupted: {e}") from e
    return data, row.image_type or DEFAULT_CONTENT_TYPE


class InlineImageStore:
    """Изображение хранится base64-строкой прямо в записи."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def store(self, data: bytes, content_type: str, owner: ImageOwner) -> StoredImage:
        return StoredImage(
            ref=f"{owner.kind_info.route_prefix}{owner.record_id}",
            content_type=content_type,
            encoded=base64.b64encode(data).decode("ascii"),
        )

    async def resolve(self, ref: str) -> tuple[bytes, str]:
        kind, record_id = self.parse_ref(ref)
        async with self.session_factory() as session:
            return await load_inline_image(session, kind, record_id)

    @staticmethod
    def parse_ref(ref: str) -> tuple[str, str]:
        for info in IMAGE_KINDS.values():
            if ref.startswith(info.route_prefix):
                record_id = ref[len(info.route_prefix):]
                if record_id and "/" not in record_id:
                    return info.name, record_id
        raise NotFoundError(f"Not an inline image reference: {ref}")


class CloudinaryImageStore:
    """
    Загрузка на Cloudinary через REST API (подписанная загрузка).

    https://cloudinary.com/documentation/upload_images#generating_authentication_signatures
    """

    def __init__(self, config: Settings, client: Optional[httpx.AsyncClient] = None):
        self.cloud_name = config.CLOUDINARY_CLOUD_NAME
        self.api_key = config.CLOUDINARY_API_KEY
        self.api_secret = config.CLOUDINARY_API_SECRET
        self.upload_url = config.CLOUDINARY_UPLOAD_URL.format(cloud_name=self.cloud_name)
        self.timeout = config.IMAGE_HTTP_TIMEOUT
        self._client = client

    def sign(self, params: dict[str, str]) -> str:
        payload = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{payload}{self.api_secret}".encode("utf-8")).hexdigest()

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def store(self, data: bytes, content_type: str, owner: ImageOwner) -> StoredImage:
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise StorageError("Image host is not configured (CLOUDINARY_* settings are empty)")

        params = {
            "folder": owner.kind_info.folder,
            "timestamp": str(int(time.time())),
        }
        form = dict(params, api_key=self.api_key, signature=self.sign(params))
        extension = mimetypes.guess_extension(content_type) or ""
        files = {"file": (f"{owner.record_id}{extension}", data, content_type)}

        try:
            async with self._http() as client:
                response = await client.post(self.upload_url, data=form, files=files)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            logger.error("Cloudinary upload failed for %s/%s: %s", owner.kind, owner.record_id, e)
            raise StorageError(f"Image upload failed: {e}") from e
        except ValueError as e:
            raise StorageError(f"Image host returned invalid JSON: {e}") from e

        secure_url = payload.get("secure_url")
        if not secure_url:
            raise StorageError("Image host response has no secure_url")

        logger.info("Image for %s/%s uploaded: %s", owner.kind, owner.record_id, secure_url)
        return StoredImage(ref=secure_url, content_type=content_type)

    async def resolve(self, ref: str) -> tuple[bytes, str]:
        try:
            async with self._http() as client:
                response = await client.get(ref)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Image download failed: {e}") from e
        content_type = response.headers.get("content-type", DEFAULT_CONTENT_TYPE).split(";")[0].strip()
        return response.content, content_type


def build_image_store(
    config: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> ImageStore:
    """Выбирает стратегию хранения по IMAGE_STORAGE."""
    mode = (config.IMAGE_STORAGE or "").strip().lower()
    if mode == "inline":
        logger.info("Image storage: inline (base64 in records)")
        return InlineImageStore(session_factory)
    if mode == "cloudinary":
        logger.info("Image storage: cloudinary (%s)", config.CLOUDINARY_CLOUD_NAME or "not configured")
        return CloudinaryImageStore(config)
    raise ValueError(f"Unsupported IMAGE_STORAGE '{config.IMAGE_STORAGE}'")
