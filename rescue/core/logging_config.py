"""
Логирование процесса: HTTP API, uvicorn и Telegram бот пишут в общие обработчики.

Консоль есть всегда. Файл (LOG_FILE) подключается, только если путь задан,
его объём ограничивает RotatingFileHandler.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Any, Optional

LOG_FILE_MAX_BYTES = 2 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Библиотеки, которые на INFO пишут слишком подробно
QUIET_LOGGERS = ("sqlalchemy.engine", "aiogram.event", "httpx")


class HealthCheckFilter(logging.Filter):
    """Отбрасывает строки access-лога для /health: его опрашивает хостинг."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return "/health" not in record.getMessage()


def build_logging_config(level: str = "INFO", log_file: Optional[str] = None) -> dict[str, Any]:
    handlers = ["console"]
    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "skip_health": {"()": HealthCheckFilter},
        },
        "formatters": {
            "console": {"format": "%(levelname)s [%(name)s] %(message)s"},
            "file": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
            },
        },
    }

    if log_file:
        handlers.append("file")
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "file",
            "filename": log_file,
            "maxBytes": LOG_FILE_MAX_BYTES,
            "backupCount": LOG_FILE_BACKUPS,
            "encoding": "utf-8",
            "delay": True,
        }

    config["root"] = {"handlers": handlers, "level": level}
    config["loggers"] = {
        # uvicorn ставит свои обработчики, поэтому его логгеры перенаправляются явно
        "uvicorn": {"handlers": handlers, "level": level, "propagate": False},
        "uvicorn.access": {
            "handlers": handlers,
            "level": level,
            "filters": ["skip_health"],
            "propagate": False,
        },
    }
    for name in QUIET_LOGGERS:
        config["loggers"][name] = {"level": "WARNING"}
    return config


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(level.upper(), log_file))
