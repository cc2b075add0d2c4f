"""
Главный файл FastAPI приложения: HTTP API сайта и Telegram бот в одном процессе.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from aiogram import Bot
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from rescue import __version__
from rescue.api import animals, chat, images, news, payments, settings as settings_api, submissions, system
from rescue.bot.setup import build_dispatcher, close_bot_session, start_polling, stop_polling
from rescue.core.config import Settings, settings as default_settings
from rescue.core.errors import register_exception_handlers
from rescue.db.init_db import init_db
from rescue.db.session import async_engine, async_session_factory
from rescue.services.images import ImageStore, build_image_store
from rescue.services.notifications import NotificationFanout, Notifier, build_notifier

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    state = app.state
    config: Settings = state.settings

    if config.DB_AUTO_CREATE:
        await init_db(state.engine)

    polling_task = None
    dispatcher = None
    if state.bot is not None:
        dispatcher = build_dispatcher(
            session_factory=state.session_factory,
            image_store=state.image_store,
            fanout=state.fanout,
            admin_chat_id=getattr(state.notifier, "chat_id", None),
        )
        polling_task = await start_polling(state.bot, dispatcher)
    else:
        logger.info("Telegram bot is not configured, command listener is not started")

    try:
        yield
    finally:
        logger.info("Shutting down gracefully")
        if dispatcher is not None:
            await stop_polling(dispatcher, polling_task)
        # Уведомления, запущенные до остановки, уходят через ещё открытую сессию бота
        await state.fanout.drain()
        if state.bot is not None:
            await close_bot_session(state.bot)
        await state.engine.dispose()
        logger.info("Database connections closed")


def _mount_static(app: FastAPI, config: Settings) -> None:
    admin_dir = Path(config.ADMIN_WEB_DIR)
    if admin_dir.is_dir():
        app.mount("/admin", StaticFiles(directory=str(admin_dir), html=True), name="admin")
    public_dir = Path(config.PUBLIC_DIR)
    if public_dir.is_dir():
        # Монтируется последним: корень перехватывает все пути, не найденные в API
        app.mount("/", StaticFiles(directory=str(public_dir), html=True), name="public")


def create_app(
    config: Optional[Settings] = None,
    *,
    engine: Optional[AsyncEngine] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    image_store: Optional[ImageStore] = None,
    notifier: Optional[Notifier] = None,
    bot: Optional[Bot] = None,
    mount_static: bool = True,
) -> FastAPI:
    """
    Собирает приложение. Все компоненты можно подменить (тесты),
    по умолчанию они создаются из настроек.
    """
    config = config or default_settings
    engine = engine or async_engine
    session_factory = session_factory or async_session_factory

    if notifier is None:
        notifier, bot = build_notifier(config)

    app = FastAPI(
        title="Rescue Site API",
        description="Animals, news, visitor chat and gift card payments",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.image_store = image_store or build_image_store(config, session_factory)
    app.state.notifier = notifier
    app.state.bot = bot
    app.state.fanout = NotificationFanout(notifier)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(system.router)
    app.include_router(animals.router)
    app.include_router(news.router)
    app.include_router(payments.router)
    app.include_router(settings_api.router)
    app.include_router(submissions.router)
    app.include_router(chat.router)
    app.include_router(images.router)

    if mount_static:
        _mount_static(app, config)

    return app


app = create_app()
