"""
Rescue Site Backend - Source Code Package
=========================================
Backend сайта приюта: животные, новости, чат с посетителями,
подарочные карты в качестве оплаты и Telegram-бот администратора.

Структура:
- api/       - HTTP эндпоинты (FastAPI роутеры)
- bot/       - Telegram бот администратора (команды)
- core/      - Конфигурация, логирование, ошибки
- db/        - Модели и сессии SQLAlchemy
- services/  - Бизнес-логика (заявки, чат, изображения, уведомления)
"""

__version__ = "1.0.0"
