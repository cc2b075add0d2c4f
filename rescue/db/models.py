"""SQLAlchemy ORM models for the rescue site."""

from __future__ import annotations

import enum
from decimal import Decimal
from typing import Optional

from sqlalchemy import Enum, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, IdMixin, JSONType, TimestampMixin


class SubmissionStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class MessageSender(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class ImageMixin:
    """
    Ссылка на изображение записи.

    image - URL внешнего хостинга или локальный путь /api/...-image/<id>;
    image_data/image_type заполняются только при inline-хранении (base64).
    """

    image: Mapped[Optional[str]] = mapped_column(Text)
    image_data: Mapped[Optional[str]] = mapped_column(Text, deferred=True)
    image_type: Mapped[Optional[str]] = mapped_column(String(64))


class Animal(IdMixin, ImageMixin, TimestampMixin, Base):
    __tablename__ = "animals"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    payments: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)


class News(IdMixin, ImageMixin, TimestampMixin, Base):
    __tablename__ = "news"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[Optional[str]] = mapped_column(Text)


class Chat(IdMixin, TimestampMixin, Base):
    __tablename__ = "chats"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Один диалог на email, email хранится в нижнем регистре
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    # [{"sender": "user" | "admin", "text": str, "time": ISO-8601}]
    messages: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def last_message(self) -> Optional[dict]:
        return self.messages[-1] if self.messages else None


class SiteSettings(IdMixin, TimestampMixin, Base):
    """Единственная запись с настройками оплаты для страницы checkout."""

    __tablename__ = "site_settings"

    email: Mapped[str] = mapped_column(String(320), default="", nullable=False)
    # [{"id", "method", "details", "email", "giftInstructions", "acceptedCards"}]
    payments: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)


class PaymentSubmission(IdMixin, ImageMixin, TimestampMixin, Base):
    __tablename__ = "payment_submissions"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text)
    payment_method: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[SubmissionStatus] = mapped_column(
        Enum(
            SubmissionStatus,
            name="submission_status",
            native_enum=False,
            length=16,
            values_callable=lambda members: [m.value for m in members],
        ),
        default=SubmissionStatus.PENDING,
        nullable=False,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
