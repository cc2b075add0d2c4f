"""
Уведомления администратора в Telegram.

Доставка best-effort: запись в БД уже зафиксирована до отправки,
ошибки Telegram ловятся и логируются и никогда не доходят до вызывающего кода.
Если BOT_TOKEN или ADMIN_CHAT_ID не заданы, используется NullNotifier,
который просто пишет текст уведомления в лог.
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from dataclasses import dataclass
from typing import Optional, Protocol, Union

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.types import BufferedInputFile
from aiogram.utils.token import TokenValidationError

from rescue.core.config import Settings
from rescue.core.errors import TransportError

logger = logging.getLogger(__name__)

CAPTION_TEXT_LIMIT = 1024  # Telegram captions <= 1024 символов


@dataclass(frozen=True)
class NotificationPhoto:
    """Изображение, которое отправляется байтами (inline-хранилище)."""

    data: bytes
    content_type: str = "image/jpeg"

    @property
    def filename(self) -> str:
        extension = mimetypes.guess_extension(self.content_type) or ".jpg"
        return f"image{extension}"


# URL внешнего хостинга или байты
Photo = Union[str, NotificationPhoto]


class Notifier(Protocol):
    async def notify(self, text: str, photo: Optional[Photo] = None) -> None:
        ...


class NullNotifier:
    """Telegram не настроен: уведомления только в лог."""

    async def notify(self, text: str, photo: Optional[Photo] = None) -> None:
        logger.info("Telegram not configured. Message: %s", text)


class TelegramNotifier:
    """Отправляет уведомления в фиксированный чат администратора."""

    def __init__(self, bot: Bot, chat_id: Union[int, str], timeout: float = 15.0):
        self.bot = bot
        self.chat_id = chat_id
        self.timeout = timeout

    async def notify(self, text: str, photo: Optional[Photo] = None) -> None:
        try:
            await asyncio.wait_for(self._send(text, photo), timeout=self.timeout)
            logger.info("Message sent to Telegram chat %s", self.chat_id)
        except asyncio.TimeoutError:
            logger.error("Telegram notification timed out after %.1fs", self.timeout)
        except Exception as e:
            logger.error("Error sending to Telegram: %s", e, exc_info=True)

    async def _send(self, text: str, photo: Optional[Photo]) -> None:
        try:
            if photo is None:
                await self.bot.send_message(chat_id=self.chat_id, text=text, parse_mode=ParseMode.HTML)
                return

            media = photo
            if isinstance(photo, NotificationPhoto):
                media = BufferedInputFile(photo.data, filename=photo.filename)

            if len(text) <= CAPTION_TEXT_LIMIT:
                await self.bot.send_photo(
                    chat_id=self.chat_id, photo=media, caption=text, parse_mode=ParseMode.HTML
                )
            else:
                # Подпись не влезает в лимит Telegram: фото и текст отдельными сообщениями
                await self.bot.send_photo(chat_id=self.chat_id, photo=media)
                await self.bot.send_message(chat_id=self.chat_id, text=text, parse_mode=ParseMode.HTML)
        except Exception as e:
            raise TransportError(str(e)) from e


class NotificationFanout:
    """
    Fire-and-forget отправка уведомлений.

    publish() не ждёт доставки: задача держится в self._tasks до завершения,
    drain() дожидается всех незавершённых отправок (остановка сервиса, тесты).
    """

    def __init__(self, notifier: Notifier):
        self.notifier = notifier
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def publish(self, text: str, photo: Optional[Photo] = None) -> None:
        task = asyncio.create_task(self._deliver(text, photo))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, text: str, photo: Optional[Photo]) -> None:
        try:
            await self.notifier.notify(text, photo)
        except asyncio.CancelledError:
            logger.warning("Notification delivery cancelled")
            raise
        except Exception as e:
            # Notifier не должен бросать исключения, но сторонняя реализация может
            logger.error("Notification delivery failed: %s", e, exc_info=True)

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def _parse_chat_id(raw: str) -> Union[int, str]:
    raw = raw.strip()
    try:
        return int(raw)
    except ValueError:
        # @channelusername тоже допустим
        return raw


def build_notifier(config: Settings) -> tuple[Notifier, Optional[Bot]]:
    """
    Создаёт notifier по настройкам.

    Returns:
        (notifier, bot) - bot равен None, если Telegram не настроен
    """
    if not config.notifications_enabled:
        logger.warning("BOT_TOKEN or ADMIN_CHAT_ID is not set, Telegram notifications are disabled")
        return NullNotifier(), None

    try:
        bot = Bot(
            token=config.BOT_TOKEN.strip(),
            default=DefaultBotProperties(parse_mode=ParseMode.HTML),
        )
    except TokenValidationError as e:
        logger.error("Invalid BOT_TOKEN, Telegram notifications are disabled: %s", e)
        return NullNotifier(), None

    chat_id = _parse_chat_id(config.ADMIN_CHAT_ID)
    logger.info("Telegram notifications enabled for chat %s", chat_id)
    return TelegramNotifier(bot, chat_id, timeout=config.NOTIFY_TIMEOUT), bot
