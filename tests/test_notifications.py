"""Уведомления: Telegram best-effort, изоляция ошибок от HTTP-ответов."""

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

from aiogram.types import BufferedInputFile
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker

from rescue.app import create_app
from rescue.db.base import Base
from rescue.db.session import create_engine_from_settings
from rescue.services.images import InlineImageStore
from rescue.services.notifications import (
    NotificationFanout,
    NotificationPhoto,
    NullNotifier,
    TelegramNotifier,
    build_notifier,
)
from tests.support import FailingNotifier, PNG_BYTES, RecordingNotifier, giftcard_form, image_file


def _mock_bot():
    bot = MagicMock()
    bot.send_message = AsyncMock()
    bot.send_photo = AsyncMock()
    return bot


async def test_null_notifier_logs(caplog):
    with caplog.at_level(logging.INFO, logger="rescue.services.notifications"):
        await NullNotifier().notify("hello admin")

    assert "Telegram not configured. Message: hello admin" in caplog.text


async def test_telegram_notifier_sends_text():
    bot = _mock_bot()

    await TelegramNotifier(bot, 42).notify("<b>hi</b>")

    bot.send_message.assert_awaited_once()
    assert bot.send_message.await_args.kwargs["chat_id"] == 42
    assert bot.send_message.await_args.kwargs["text"] == "<b>hi</b>"


async def test_telegram_notifier_sends_photo_bytes_with_caption():
    bot = _mock_bot()

    await TelegramNotifier(bot, 42).notify("caption", NotificationPhoto(PNG_BYTES, "image/png"))

    bot.send_photo.assert_awaited_once()
    kwargs = bot.send_photo.await_args.kwargs
    assert isinstance(kwargs["photo"], BufferedInputFile)
    assert kwargs["caption"] == "caption"
    bot.send_message.assert_not_awaited()


async def test_telegram_notifier_splits_long_caption():
    bot = _mock_bot()

    await TelegramNotifier(bot, 42).notify("x" * 2000, "https://img.example.com/card.png")

    assert bot.send_photo.await_args.kwargs["photo"] == "https://img.example.com/card.png"
    assert "caption" not in bot.send_photo.await_args.kwargs
    bot.send_message.assert_awaited_once()


async def test_telegram_notifier_swallows_errors(caplog):
    bot = _mock_bot()
    bot.send_message.side_effect = RuntimeError("network down")

    with caplog.at_level(logging.ERROR):
        await TelegramNotifier(bot, 42).notify("hello")

    assert "Error sending to Telegram" in caplog.text


async def test_telegram_notifier_timeout():
    bot = _mock_bot()

    async def slow(**kwargs):
        await asyncio.sleep(1)

    bot.send_message.side_effect = slow

    await TelegramNotifier(bot, 42, timeout=0.01).notify("hello")


async def test_fanout_isolates_failures():
    notifier = FailingNotifier()
    fanout = NotificationFanout(notifier)

    fanout.publish("one")
    fanout.publish("two")
    assert fanout.pending == 2
    await fanout.drain()

    assert notifier.calls == 2
    assert fanout.pending == 0


VOLATILE_KEYS = {"id", "createdAt", "updatedAt", "giftCardImage", "time"}


def _stable(value):
    """Ответ без идентификаторов и времени, которые различаются между запусками."""
    if isinstance(value, dict):
        return {k: _stable(v) for k, v in value.items() if k not in VOLATILE_KEYS}
    if isinstance(value, list):
        return [_stable(item) for item in value]
    return value


async def _exercise(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        submit = await client.post("/submit-giftcard", data=giftcard_form(), files=image_file())
        submission_id = submit.json()["submission"]["id"]
        update = await client.put(f"/giftcard-submissions/{submission_id}", json={"status": "verified"})
        chat = await client.post("/chat", json={"name": "Ann", "email": "ann@example.com", "message": "Hi"})
        reply = await client.post(f"/chat/{chat.json()['id']}/reply", json={"message": "Hello Ann"})
        await app.state.fanout.drain()
    return [(r.status_code, _stable(r.json())) for r in (submit, update, chat, reply)]


async def test_failing_notifier_does_not_change_http_response(test_settings, engine, session_factory, image_store,
                                                              tmp_path):
    failing = FailingNotifier()
    failing_app = create_app(
        test_settings,
        engine=engine,
        session_factory=session_factory,
        image_store=image_store,
        notifier=failing,
        mount_static=False,
    )

    healthy_settings = test_settings.model_copy(update={"DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path}/healthy.db"})
    healthy_engine = create_engine_from_settings(healthy_settings)
    async with healthy_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    healthy_factory = async_sessionmaker(healthy_engine, expire_on_commit=False, autoflush=False)
    recording = RecordingNotifier()
    healthy_app = create_app(
        healthy_settings,
        engine=healthy_engine,
        session_factory=healthy_factory,
        image_store=InlineImageStore(healthy_factory),
        notifier=recording,
        mount_static=False,
    )

    try:
        with_failures = await _exercise(failing_app)
        without_failures = await _exercise(healthy_app)
    finally:
        await healthy_engine.dispose()

    assert with_failures == without_failures
    assert [status for status, _ in with_failures] == [200, 200, 200, 200]
    assert failing.calls == 4
    assert len(recording.sent) == 4


def test_build_notifier_without_token_is_inert(test_settings):
    notifier, bot = build_notifier(test_settings)

    assert isinstance(notifier, NullNotifier)
    assert bot is None


def test_build_notifier_with_invalid_token(test_settings):
    config = test_settings.model_copy(update={"BOT_TOKEN": "not-a-token", "ADMIN_CHAT_ID": "1"})

    notifier, bot = build_notifier(config)

    assert isinstance(notifier, NullNotifier)
    assert bot is None


def test_build_notifier_with_token(test_settings):
    config = test_settings.model_copy(update={"BOT_TOKEN": "123456:ABCdefGhIJKlmnoPQRstuVWXyz", "ADMIN_CHAT_ID": "-100500"})

    notifier, bot = build_notifier(config)

    assert isinstance(notifier, TelegramNotifier)
    assert notifier.chat_id == -100500
    assert bot is not None
