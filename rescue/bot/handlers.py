"""
Команды Telegram бота администратора.

/start, /help - справка
/chats        - 10 последних диалогов
/payments     - 10 последних заявок по подарочным картам
/reply <id> <текст> - ответ посетителю в чат на сайте

Каждая команда сама ловит свои ошибки и отвечает только запросившему.
Зависимости (session_factory, fanout) приходят из workflow data диспетчера.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from aiogram import F, Router
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rescue.core.errors import NotFoundError
from rescue.db.session import get_async_session
from rescue.services.chats import ChatService
from rescue.services.formatting import (
    format_chat_list,
    format_submission_list,
    help_text,
    welcome_text,
)
from rescue.services.images import ImageStore
from rescue.services.notifications import NotificationFanout
from rescue.services.submissions import SubmissionService

logger = logging.getLogger(__name__)

RECENT_LIMIT = 10
REPLY_USAGE = "Usage: /reply [chat_id] [message]"


async def cmd_start(message: Message) -> None:
    await message.answer(welcome_text())


async def cmd_help(message: Message) -> None:
    await message.answer(help_text())


async def cmd_chats(
    message: Message,
    session_factory: async_sessionmaker[AsyncSession],
    fanout: NotificationFanout,
) -> None:
    try:
        async with session_factory() as session:
            chats = await ChatService(session, fanout).list_recently_updated(RECENT_LIMIT)
        if not chats:
            await message.answer("No active chats found.")
            return
        await message.answer(format_chat_list(chats))
    except Exception as e:
        logger.error("Error fetching chats: %s", e, exc_info=True)
        await message.answer("Error fetching chats.")


async def cmd_payments(
    message: Message,
    session_factory: async_sessionmaker[AsyncSession],
    image_store: ImageStore,
    fanout: NotificationFanout,
) -> None:
    try:
        async with session_factory() as session:
            service = SubmissionService(session, image_store, fanout)
            submissions = await service.list_submissions(limit=RECENT_LIMIT)
        if not submissions:
            await message.answer("No gift card submissions found.")
            return
        await message.answer(format_submission_list(submissions))
    except Exception as e:
        logger.error("Error fetching payments: %s", e, exc_info=True)
        await message.answer("Error fetching payments.")


async def cmd_reply(
    message: Message,
    command: CommandObject,
    session_factory: async_sessionmaker[AsyncSession],
    fanout: NotificationFanout,
) -> None:
    parts = (command.args or "").strip().split(maxsplit=1)
    if len(parts) < 2:
        await message.answer(REPLY_USAGE)
        return
    chat_id, text = parts

    try:
        async with get_async_session(session_factory) as session:
            chat = await ChatService(session, fanout).post_admin_reply(chat_id, text)
    except NotFoundError:
        await message.answer("Chat not found.")
        return
    except Exception as e:
        logger.error("Error replying to chat %s: %s", chat_id, e, exc_info=True)
        await message.answer("Error sending reply.")
        return

    await message.answer(f"✅ Reply sent to {chat.name}!", parse_mode=None)


def _admin_chat_filter(admin_chat_id: Optional[Union[int, str]]):
    if isinstance(admin_chat_id, int):
        return F.chat.id == admin_chat_id
    if admin_chat_id:
        logger.warning("ADMIN_CHAT_ID %s is not numeric, bot commands are accepted from any chat", admin_chat_id)
    return None


def build_router(admin_chat_id: Optional[Union[int, str]] = None) -> Router:
    """Роутер с командами; команды принимаются только из чата администратора."""
    router = Router(name="admin_commands")
    chat_filter = _admin_chat_filter(admin_chat_id)
    if chat_filter is not None:
        router.message.filter(chat_filter)

    router.message.register(cmd_start, CommandStart())
    router.message.register(cmd_help, Command("help"))
    router.message.register(cmd_chats, Command("chats"))
    router.message.register(cmd_payments, Command("payments"))
    router.message.register(cmd_reply, Command("reply"))
    return router
