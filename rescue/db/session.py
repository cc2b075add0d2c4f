"""Async SQLAlchemy engine and session factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from rescue.core.config import Settings, build_async_db_url, settings
from .models import Base  # noqa: F401  # ensure models are imported for metadata


def create_engine_from_settings(config: Settings) -> AsyncEngine:
    url = build_async_db_url(config)
    if url.startswith("sqlite"):
        # SQLite используется в тестах: без пула, чтобы соединения не переживали event loop
        return create_async_engine(url, echo=config.DEBUG_MODE, poolclass=NullPool)

    connect_args: dict = {
        "timeout": config.DB_TIMEOUT,
        "command_timeout": config.DB_TIMEOUT,
    }
    sslmode = (config.POSTGRES_SSLMODE or "").strip().lower()
    if sslmode == "disable":
        connect_args["ssl"] = False
    elif sslmode in {"require", "verify-ca", "verify-full"}:
        connect_args["ssl"] = True
    # Для значений prefer/allow или пустых ничего не передаем (используется настройка по умолчанию asyncpg)

    return create_async_engine(
        url,
        echo=config.DEBUG_MODE,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


async_engine = create_engine_from_settings(settings)

async_session_factory = async_sessionmaker(
    async_engine,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_async_session(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncIterator[AsyncSession]:
    """Yield an AsyncSession with commit/rollback handling."""
    async with (factory or async_session_factory)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
