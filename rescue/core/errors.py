"""
Таксономия ошибок приложения и их отображение в HTTP-ответы.

Ошибки доставки уведомлений (TransportError) наружу не выходят:
их ловит и логирует компонент уведомлений.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)


class RescueError(Exception):
    """Базовая ошибка приложения с HTTP-статусом."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RescueError):
    """Отсутствует или некорректно обязательное поле."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(RescueError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(RescueError):
    """Недопустимый переход статуса или конкурентное изменение записи."""

    status_code = status.HTTP_409_CONFLICT


class StorageError(RescueError):
    """Сбой хранилища (БД или хостинга изображений)."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class TransportError(Exception):
    """Не удалось доставить уведомление в Telegram."""


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _rescue_error_handler(request: Request, exc: RescueError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.message)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    missing = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        if loc:
            missing.append(".".join(loc))
    if missing:
        message = f"Missing or invalid field: {', '.join(missing)}"
    else:
        message = "Invalid request body"
    return _error_response(status.HTTP_400_BAD_REQUEST, message)


async def _stale_data_handler(request: Request, exc: StaleDataError) -> JSONResponse:
    logger.warning("Concurrent modification on %s %s: %s", request.method, request.url.path, exc)
    return _error_response(
        status.HTTP_409_CONFLICT,
        "Record was modified concurrently, reload and try again",
    )


async def _storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    """Подключает обработчики ошибок к приложению."""
    app.add_exception_handler(RescueError, _rescue_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    # StaleDataError наследуется от SQLAlchemyError, FastAPI выбирает ближайший по MRO
    app.add_exception_handler(StaleDataError, _stale_data_handler)
    app.add_exception_handler(SQLAlchemyError, _storage_error_handler)
