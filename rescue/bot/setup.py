"""
Запуск и остановка long polling бота администратора внутри процесса API.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Union

from aiogram import Bot, Dispatcher
from aiogram.types import BotCommand, BotCommandScopeDefault, MenuButtonCommands
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rescue.bot.handlers import build_router
from rescue.services.images import ImageStore
from rescue.services.notifications import NotificationFanout

logger = logging.getLogger(__name__)

STOP_TIMEOUT = 10.0


async def setup_bot_menu(bot: Bot) -> None:
    """
    Настраивает список команд бота, отображаемых в боковом меню Telegram.
    """
    commands = [
        BotCommand(command="start", description="Welcome message"),
        BotCommand(command="chats", description="View recent chats"),
        BotCommand(command="payments", description="View recent gift card submissions"),
        BotCommand(command="reply", description="Reply to a chat: /reply <chat_id> <message>"),
        BotCommand(command="help", description="Show help"),
    ]
    await bot.set_my_commands(commands, scope=BotCommandScopeDefault())
    await bot.set_chat_menu_button(menu_button=MenuButtonCommands())


def build_dispatcher(
    *,
    session_factory: async_sessionmaker[AsyncSession],
    image_store: ImageStore,
    fanout: NotificationFanout,
    admin_chat_id: Optional[Union[int, str]] = None,
) -> Dispatcher:
    """Диспетчер с командами; зависимости передаются хендлерам через workflow data."""
    dp = Dispatcher(
        session_factory=session_factory,
        image_store=image_store,
        fanout=fanout,
    )
    dp.include_router(build_router(admin_chat_id))
    return dp


async def start_polling(bot: Bot, dp: Dispatcher) -> asyncio.Task:
    """
    Запускает polling фоновой задачей.

    Ошибка настройки меню не мешает запуску: команды работают и без него.
    """
    try:
        await setup_bot_menu(bot)
    except Exception as e:
        logger.warning("Не удалось настроить меню бота: %s", e)

    try:
        await bot.delete_webhook(drop_pending_updates=True)
    except Exception as e:
        logger.warning("Не удалось удалить webhook: %s", e)

    task = asyncio.create_task(
        dp.start_polling(bot, handle_signals=False, close_bot_session=False),
        name="telegram-polling",
    )
    logger.info("Telegram bot polling started 🚀")
    return task


async def stop_polling(dp: Dispatcher, task: Optional[asyncio.Task]) -> None:
    """
    Останавливает polling. HTTP-сессия бота остаётся открытой:
    её закрывает close_bot_session после отправки оставшихся уведомлений.
    """
    if task is not None and not task.done():
        try:
            await dp.stop_polling()
        except RuntimeError:
            # Polling ещё не успел стартовать
            pass
        try:
            await asyncio.wait_for(task, timeout=STOP_TIMEOUT)
        except asyncio.TimeoutError:
            task.cancel()
            logger.warning("Telegram polling did not stop in %.0fs, cancelled", STOP_TIMEOUT)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("Telegram polling finished with error: %s", e)

    logger.info("Telegram bot polling stopped")


async def close_bot_session(bot: Bot) -> None:
    try:
        await bot.session.close()
    except Exception as e:
        logger.warning("Не удалось закрыть сессию бота: %s", e)
