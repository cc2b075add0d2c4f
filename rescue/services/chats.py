"""
Чат посетителей сайта с администратором.

Один диалог на email: повторное обращение с тем же адресом дописывает
сообщение в существующий диалог. Уведомление в Telegram уходит после commit.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rescue.core.errors import ConflictError, NotFoundError, ValidationError
from rescue.db.base import new_id, utcnow
from rescue.db.models import Chat, MessageSender
from rescue.services.formatting import format_admin_reply_notification, format_chat_notification
from rescue.services.notifications import NotificationFanout

logger = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _require(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"Missing required field: {field}")
    return value


def _append_message(chat: Chat, sender: MessageSender, text: str) -> None:
    # Новый список, чтобы SQLAlchemy увидел изменение JSON-колонки
    chat.messages = [
        *(chat.messages or []),
        {"sender": sender.value, "text": text, "time": utcnow().isoformat()},
    ]
    chat.updated_at = utcnow()


class ChatService:
    def __init__(self, session: AsyncSession, fanout: NotificationFanout):
        self.session = session
        self.fanout = fanout

    async def get(self, chat_id: str) -> Chat:
        chat = await self.session.get(Chat, chat_id)
        if chat is None:
            raise NotFoundError("Chat not found")
        return chat

    async def find_by_email(self, email: str) -> Optional[Chat]:
        result = await self.session.execute(select(Chat).where(Chat.email == normalize_email(email)))
        return result.scalar_one_or_none()

    async def list_recent(self, limit: int = 20) -> Sequence[Chat]:
        result = await self.session.execute(select(Chat).order_by(Chat.created_at.desc()).limit(limit))
        return result.scalars().all()

    async def list_recently_updated(self, limit: int = 10) -> Sequence[Chat]:
        result = await self.session.execute(select(Chat).order_by(Chat.updated_at.desc()).limit(limit))
        return result.scalars().all()

    async def post_message(self, name: Optional[str], email: Optional[str], text: Optional[str]) -> Chat:
        """Находит или создаёт диалог по email и добавляет сообщение посетителя."""
        name = _require(name, "name")
        email = normalize_email(_require(email, "email"))
        text = _require(text, "message")

        chat = await self.find_by_email(email)
        if chat is None:
            now = utcnow()
            chat = Chat(id=new_id(), name=name, email=email, messages=[], created_at=now, updated_at=now)
            self.session.add(chat)
            logger.info("New chat %s for %s", chat.id, email)

        _append_message(chat, MessageSender.USER, text)
        try:
            await self.session.commit()
        except IntegrityError as e:
            # Параллельный запрос успел создать диалог с тем же email
            await self.session.rollback()
            raise ConflictError("Chat for this email was created concurrently, try again") from e

        self.fanout.publish(format_chat_notification(chat))
        return chat

    async def post_admin_reply(self, chat_id: str, text: Optional[str]) -> Chat:
        text = _require(text, "message")
        chat = await self.get(chat_id)

        _append_message(chat, MessageSender.ADMIN, text)
        await self.session.commit()
        logger.info("Admin reply appended to chat %s", chat.id)

        self.fanout.publish(format_admin_reply_notification(chat, text))
        return chat
