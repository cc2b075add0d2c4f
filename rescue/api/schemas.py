"""
Pydantic схемы HTTP API.

Имена полей в JSON совпадают с тем, что ожидает фронтенд сайта
(camelCase: createdAt, paymentMethod, giftCardImage ...).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from rescue.db.models import SubmissionStatus


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# ============================================================================
# Заявки (подарочные карты)
# ============================================================================

class SubmissionOut(ORMModel):
    """Заявка без байтов изображения: только ссылка для загрузки."""
    id: str
    name: str
    email: str
    amount: Decimal
    note: Optional[str] = None
    payment_method: Optional[str] = Field(None, serialization_alias="paymentMethod")
    image: Optional[str] = Field(None, serialization_alias="giftCardImage")
    image_type: Optional[str] = Field(None, serialization_alias="giftCardImageType")
    status: SubmissionStatus
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    @field_serializer("amount")
    def _amount_as_number(self, value: Decimal) -> float:
        return float(value)


class SubmitResponse(BaseModel):
    success: bool = True
    message: str
    submission: SubmissionOut


class StatusUpdate(BaseModel):
    # Проверку значения делает сервис, чтобы ошибка называла поле
    status: Optional[str] = None


# ============================================================================
# Чат
# ============================================================================

class ChatMessageOut(BaseModel):
    sender: str
    text: str
    time: str


class ChatOut(ORMModel):
    id: str
    name: str
    email: str
    messages: List[ChatMessageOut]
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")


class ChatCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None


class ChatReply(BaseModel):
    message: Optional[str] = None


# ============================================================================
# Животные и новости
# ============================================================================

class AnimalOut(ORMModel):
    id: str
    title: str
    description: Optional[str] = None
    price: Optional[Decimal] = None
    image: Optional[str] = None
    payments: List[str] = Field(default_factory=list)
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    @field_serializer("price")
    def _price_as_number(self, value: Optional[Decimal]) -> Optional[float]:
        return float(value) if value is not None else None


class NewsOut(ORMModel):
    id: str
    title: str
    content: Optional[str] = None
    image: Optional[str] = None
    image_type: Optional[str] = Field(None, serialization_alias="imageType")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")


class SuccessResponse(BaseModel):
    success: bool = True


# ============================================================================
# Настройки оплаты
# ============================================================================

class PaymentMethodIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    method: Optional[str] = None
    details: Optional[str] = None
    email: Optional[str] = None
    gift_instructions: Optional[str] = Field(None, alias="giftInstructions")
    accepted_cards: Optional[str] = Field(None, alias="acceptedCards")

    def as_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class SettingsIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = ""
    payments: List[PaymentMethodIn] = Field(default_factory=list)


class SettingsOut(BaseModel):
    email: str = ""
    payments: List[Dict[str, Any]] = Field(default_factory=list)


# ============================================================================
# Система
# ============================================================================

class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    service: str
    version: str
    database: str
    notifications: str
