"""
Общие фикстуры тестов.

Каждый тест получает собственную SQLite базу (aiosqlite) и приложение,
собранное через create_app с записывающим notifier вместо Telegram.
"""

import os
import tempfile

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Окружение задаётся до импорта rescue: settings читаются при импорте
_TMP_ROOT = tempfile.mkdtemp(prefix="rescue-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_ROOT}/default.db"
os.environ["BOT_TOKEN"] = ""
os.environ["ADMIN_CHAT_ID"] = ""
os.environ["IMAGE_STORAGE"] = "inline"
os.environ["UPLOAD_TMP_DIR"] = os.path.join(_TMP_ROOT, "uploads")
os.environ["DB_AUTO_CREATE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from sqlalchemy.ext.asyncio import async_sessionmaker  # noqa: E402

from rescue.app import create_app  # noqa: E402
from rescue.core.config import settings  # noqa: E402
from rescue.db.base import Base  # noqa: E402
from rescue.db.session import create_engine_from_settings  # noqa: E402
from rescue.services.images import InlineImageStore  # noqa: E402
from rescue.services.notifications import NotificationFanout  # noqa: E402
from tests.support import RecordingNotifier  # noqa: E402


@pytest.fixture
def test_settings(tmp_path):
    return settings.model_copy(
        update={
            "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path}/test.db",
            "UPLOAD_TMP_DIR": str(tmp_path / "uploads"),
            "IMAGE_STORAGE": "inline",
            "BOT_TOKEN": "",
            "ADMIN_CHAT_ID": "",
            "DB_AUTO_CREATE": False,
            "MAX_UPLOAD_SIZE": 1024 * 1024,
        }
    )


@pytest_asyncio.fixture
async def engine(test_settings):
    engine = create_engine_from_settings(test_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def fanout(notifier):
    return NotificationFanout(notifier)


@pytest.fixture
def image_store(session_factory):
    return InlineImageStore(session_factory)


@pytest.fixture
def app(test_settings, engine, session_factory, image_store, notifier):
    return create_app(
        test_settings,
        engine=engine,
        session_factory=session_factory,
        image_store=image_store,
        notifier=notifier,
        mount_static=False,
    )


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await app.state.fanout.drain()
