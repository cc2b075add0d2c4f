"""
Bot Package
===========
Telegram bot: admin commands and polling lifecycle.
"""

from .handlers import build_router
from .setup import build_dispatcher, close_bot_session, start_polling, stop_polling

__all__ = ['build_router', 'build_dispatcher', 'start_polling', 'stop_polling', 'close_bot_session']
