"""
HTTP API package.

Роутеры подключаются в rescue.app.create_app.
"""

from . import animals, chat, images, news, payments, settings, submissions, system

__all__ = ["animals", "chat", "images", "news", "payments", "settings", "submissions", "system"]
