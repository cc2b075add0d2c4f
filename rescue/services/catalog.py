"""CRUD для карточек животных и новостей."""

from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rescue.core.errors import NotFoundError, ValidationError
from rescue.db.base import new_id, utcnow
from rescue.db.models import Animal, News
from rescue.services.images import ImageOwner, ImageStore

logger = logging.getLogger(__name__)


def _require(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"Missing required field: {field}")
    return value


def parse_price(raw: Optional[str]) -> Optional[Decimal]:
    text = (raw or "").strip()
    if not text:
        return None
    try:
        price = Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"Price must be a number, got '{text}'")
    if not price.is_finite() or price < 0:
        raise ValidationError("Price must be a non-negative number")
    return price


def parse_payments(raw: Optional[str]) -> list[str]:
    """Список способов оплаты приходит из формы JSON-строкой: '["PayPal", "Gift card"]'."""
    text = (raw or "").strip()
    if not text:
        return []
    try:
        value: Any = json.loads(text)
    except json.JSONDecodeError:
        raise ValidationError("Field payments must be a JSON array of strings")
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError("Field payments must be a JSON array of strings")
    return value


class AnimalService:
    def __init__(self, session: AsyncSession, images: ImageStore):
        self.session = session
        self.images = images

    async def list_animals(self) -> Sequence[Animal]:
        result = await self.session.execute(select(Animal).order_by(Animal.created_at.desc()))
        return result.scalars().all()

    async def create(
        self,
        *,
        title: Optional[str],
        description: Optional[str],
        price: Optional[str],
        payments: Optional[str],
        image: bytes,
        content_type: str,
    ) -> Animal:
        now = utcnow()
        animal = Animal(
            id=new_id(),
            title=_require(title, "title"),
            description=(description or "").strip() or None,
            price=parse_price(price),
            payments=parse_payments(payments),
            created_at=now,
            updated_at=now,
        )
        stored = await self.images.store(image, content_type, ImageOwner("animal", animal.id))
        stored.apply_to(animal)
        self.session.add(animal)
        await self.session.commit()
        logger.info("Animal %s created: %s", animal.id, animal.title)
        return animal

    async def delete(self, animal_id: str) -> None:
        animal = await self.session.get(Animal, animal_id)
        if animal is None:
            raise NotFoundError("Animal not found")
        await self.session.delete(animal)
        await self.session.commit()
        logger.info("Animal %s deleted", animal_id)


class NewsService:
    def __init__(self, session: AsyncSession, images: ImageStore, default_image: str):
        self.session = session
        self.images = images
        self.default_image = default_image

    async def list_news(self) -> Sequence[News]:
        result = await self.session.execute(select(News).order_by(News.created_at.desc()))
        return result.scalars().all()

    async def create(
        self,
        *,
        title: Optional[str],
        content: Optional[str],
        image_url: Optional[str] = None,
        image: Optional[bytes] = None,
        content_type: Optional[str] = None,
    ) -> News:
        """Картинка: загруженный файл, иначе imageUrl из формы, иначе картинка по умолчанию."""
        now = utcnow()
        news = News(
            id=new_id(),
            title=_require(title, "title"),
            content=(content or "").strip() or None,
            created_at=now,
            updated_at=now,
        )
        if image:
            stored = await self.images.store(
                image, content_type or "application/octet-stream", ImageOwner("news", news.id)
            )
            stored.apply_to(news)
        else:
            news.image = (image_url or "").strip() or self.default_image

        self.session.add(news)
        await self.session.commit()
        logger.info("News %s created: %s", news.id, news.title)
        return news

    async def delete(self, news_id: str) -> None:
        news = await self.session.get(News, news_id)
        if news is None:
            raise NotFoundError("News not found")
        await self.session.delete(news)
        await self.session.commit()
        logger.info("News %s deleted", news_id)
