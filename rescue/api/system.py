"""
Проверка работоспособности сервиса.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from rescue import __version__
from rescue.api.schemas import HealthResponse
from rescue.db.base import utcnow
from rescue.db.init_db import check_db_connection

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Всегда 200, пока процесс жив; состояние БД и бота - информационно."""
    state = request.app.state
    database_ok = await check_db_connection(state.engine)
    return HealthResponse(
        status="OK",
        timestamp=utcnow(),
        service="Rescue Site API",
        version=__version__,
        database="connected" if database_ok else "unavailable",
        notifications="telegram" if state.bot is not None else "disabled",
    )
