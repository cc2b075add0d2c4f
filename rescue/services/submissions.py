"""
Заявки об оплате подарочной картой.

Жизненный цикл заявки: pending -> verified | rejected. Переходы выполняет
только администратор, из конечных статусов выйти нельзя.

Порядок шагов в submit/update_status: запись в БД фиксируется (commit),
и только после этого уведомление уходит в Telegram через NotificationFanout.
Сбой уведомления не влияет на результат запроса.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rescue.core.errors import ConflictError, NotFoundError, ValidationError
from rescue.db.base import new_id, utcnow
from rescue.db.models import PaymentSubmission, SubmissionStatus
from rescue.services.formatting import format_status_notification, format_submission_notification
from rescue.services.images import ImageOwner, ImageStore
from rescue.services.notifications import NotificationFanout, NotificationPhoto

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
# Numeric(12, 2): не более 10 цифр до запятой
MAX_AMOUNT = Decimal("10000000000")

# Допустимые переходы статуса заявки
ALLOWED_TRANSITIONS: dict[SubmissionStatus, frozenset[SubmissionStatus]] = {
    SubmissionStatus.PENDING: frozenset({SubmissionStatus.VERIFIED, SubmissionStatus.REJECTED}),
    SubmissionStatus.VERIFIED: frozenset(),
    SubmissionStatus.REJECTED: frozenset(),
}


def parse_amount(raw: Any) -> Decimal:
    """
    Приводит сумму из формы к Decimal с точностью до центов.

    Raises:
        ValidationError: пусто, не число, NaN/Infinity, сумма <= 0 или не меньше MAX_AMOUNT
    """
    text = str(raw).strip() if raw is not None else ""
    if not text:
        raise ValidationError("Missing required field: amount")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"Amount must be a number, got '{text}'")
    if not amount.is_finite():
        raise ValidationError(f"Amount must be a finite number, got '{text}'")
    try:
        # Слишком большие значения не помещаются в точность контекста Decimal
        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"Invalid amount: '{text}' is too large")
    if amount >= MAX_AMOUNT:
        raise ValidationError(f"Invalid amount: must be less than {MAX_AMOUNT}")
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero")
    return amount


def parse_status(raw: Any) -> SubmissionStatus:
    text = str(raw).strip().lower() if raw is not None else ""
    if not text:
        raise ValidationError("Missing required field: status")
    try:
        return SubmissionStatus(text)
    except ValueError:
        allowed = ", ".join(s.value for s in SubmissionStatus)
        raise ValidationError(f"Invalid status '{raw}', expected one of: {allowed}")


def transition(current: SubmissionStatus, new: SubmissionStatus) -> SubmissionStatus:
    """Возвращает новый статус или бросает ConflictError для запрещённого перехода."""
    if new not in ALLOWED_TRANSITIONS[current]:
        raise ConflictError(
            f"Cannot change submission status from '{current.value}' to '{new.value}'"
        )
    return new


def _require(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"Missing required field: {field}")
    return value


@dataclass(frozen=True)
class SubmissionInput:
    """Проверенные поля формы заявки (без изображения)."""

    name: str
    email: str
    amount: Decimal
    note: Optional[str]
    payment_method: Optional[str]

    @classmethod
    def from_form(
        cls,
        *,
        name: Optional[str],
        email: Optional[str],
        amount: Any,
        note: Optional[str] = None,
        payment_method: Optional[str] = None,
    ) -> "SubmissionInput":
        return cls(
            name=_require(name, "name"),
            email=_require(email, "email"),
            amount=parse_amount(amount),
            note=(note or "").strip() or None,
            payment_method=(payment_method or "").strip() or None,
        )


class SubmissionService:
    """Workflow заявок: отправка, список, смена статуса."""

    def __init__(self, session: AsyncSession, images: ImageStore, fanout: NotificationFanout):
        self.session = session
        self.images = images
        self.fanout = fanout

    async def submit(self, payload: SubmissionInput, image: bytes, content_type: str) -> PaymentSubmission:
        if not image:
            raise ValidationError("Missing required field: giftCardImage")

        record_id = new_id()
        stored = await self.images.store(image, content_type, ImageOwner("giftcard", record_id))

        now = utcnow()
        submission = PaymentSubmission(
            id=record_id,
            name=payload.name,
            email=payload.email,
            amount=payload.amount,
            note=payload.note,
            payment_method=payload.payment_method,
            status=SubmissionStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        stored.apply_to(submission)
        self.session.add(submission)
        await self.session.commit()
        logger.info("Gift card submission %s saved (%s, $%s)", submission.id, submission.email, submission.amount)

        # Внешний URL Telegram скачает сам, inline-байты отправляем файлом
        photo = stored.ref if stored.encoded is None else NotificationPhoto(image, content_type)
        self.fanout.publish(format_submission_notification(submission), photo)
        return submission

    async def list_submissions(self, limit: Optional[int] = None) -> Sequence[PaymentSubmission]:
        stmt = select(PaymentSubmission).order_by(PaymentSubmission.created_at.desc())
        if limit:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def update_status(self, submission_id: str, status: Any) -> PaymentSubmission:
        """
        Меняет статус заявки.

        Одновременные изменения одной заявки ловит version_id_col:
        устаревшая запись приводит к StaleDataError (HTTP 409).
        """
        new_status = parse_status(status)
        submission = await self.session.get(PaymentSubmission, submission_id)
        if submission is None:
            raise NotFoundError("Submission not found")

        submission.status = transition(submission.status, new_status)
        await self.session.commit()
        logger.info("Submission %s status -> %s", submission.id, submission.status.value)

        self.fanout.publish(format_status_notification(submission))
        return submission
