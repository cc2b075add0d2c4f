"""
Зависимости FastAPI.

Все компоненты (фабрика сессий, хранилище изображений, рассылка уведомлений)
создаются в create_app и лежат в app.state, роутеры получают их через Depends.
"""

from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rescue.core.config import Settings
from rescue.services.catalog import AnimalService, NewsService
from rescue.services.chats import ChatService
from rescue.services.images import ImageStore
from rescue.services.notifications import NotificationFanout
from rescue.services.site_settings import SiteSettingsService
from rescue.services.submissions import SubmissionService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_image_store(request: Request) -> ImageStore:
    return request.app.state.image_store


def get_fanout(request: Request) -> NotificationFanout:
    return request.app.state.fanout


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Dependency для FastAPI, возвращает сессию БД.

    FastAPI автоматически обрабатывает async generators через Depends.
    """
    async with request.app.state.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


SessionDep = Annotated[AsyncSession, Depends(get_db_session)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
ImageStoreDep = Annotated[ImageStore, Depends(get_image_store)]
FanoutDep = Annotated[NotificationFanout, Depends(get_fanout)]


def get_submission_service(session: SessionDep, images: ImageStoreDep, fanout: FanoutDep) -> SubmissionService:
    return SubmissionService(session, images, fanout)


def get_chat_service(session: SessionDep, fanout: FanoutDep) -> ChatService:
    return ChatService(session, fanout)


def get_animal_service(session: SessionDep, images: ImageStoreDep) -> AnimalService:
    return AnimalService(session, images)


def get_news_service(session: SessionDep, images: ImageStoreDep, config: SettingsDep) -> NewsService:
    return NewsService(session, images, config.DEFAULT_NEWS_IMAGE)


def get_site_settings_service(session: SessionDep) -> SiteSettingsService:
    return SiteSettingsService(session)
