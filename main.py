"""
==============================================================================
RESCUE SITE BACKEND - MAIN ENTRY POINT
==============================================================================
Главная точка входа: HTTP API сайта и Telegram бот администратора
в одном процессе (uvicorn + aiogram polling в lifespan приложения).

Использование:
    python main.py
==============================================================================
"""

import uvicorn

from rescue.core.config import settings
from rescue.core.logging_config import setup_logging

if __name__ == "__main__":
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE or None)
    uvicorn.run(
        "rescue.app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG_MODE,
        log_config=None,  # Логирование уже настроено setup_logging
    )
