"""Database package: async engine, models, and session utilities."""

from .session import async_engine, async_session_factory, get_async_session
from .models import Base

__all__ = ["async_engine", "async_session_factory", "get_async_session", "Base"]
