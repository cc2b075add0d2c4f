"""Service for the singleton checkout settings (contact email and payment methods)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from rescue.core.errors import NotFoundError
from rescue.db.base import new_id, utcnow
from rescue.db.models import SiteSettings

logger = logging.getLogger(__name__)

PAYMENT_METHOD_FIELDS = ("method", "details", "email", "giftInstructions", "acceptedCards")


def normalize_payment_method(data: Dict[str, Any]) -> Dict[str, Any]:
    """Оставляет известные поля способа оплаты и присваивает id, если его нет."""
    method = {field: data.get(field) for field in PAYMENT_METHOD_FIELDS}
    method["id"] = str(data.get("id") or new_id())
    return method


class SiteSettingsService:
    """Read/write access to SiteSettings."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find(self) -> Optional[SiteSettings]:
        result = await self.session.execute(select(SiteSettings).limit(1))
        return result.scalar_one_or_none()

    async def get_or_create(self) -> SiteSettings:
        """Ensure settings row exists and return it."""
        site_settings = await self.find()
        if site_settings:
            return site_settings

        now = utcnow()
        site_settings = SiteSettings(id=new_id(), email="", payments=[], created_at=now, updated_at=now)
        self.session.add(site_settings)
        await self.session.flush()
        return site_settings

    async def replace(self, email: Optional[str], payments: List[Dict[str, Any]]) -> SiteSettings:
        """Полная замена настроек (POST /settings)."""
        await self.session.execute(delete(SiteSettings))
        now = utcnow()
        site_settings = SiteSettings(
            id=new_id(),
            email=(email or "").strip(),
            payments=[normalize_payment_method(item) for item in payments],
            created_at=now,
            updated_at=now,
        )
        self.session.add(site_settings)
        await self.session.commit()
        logger.info("Site settings replaced (%d payment methods)", len(site_settings.payments))
        return site_settings

    async def list_payment_methods(self) -> List[Dict[str, Any]]:
        site_settings = await self.find()
        return list(site_settings.payments) if site_settings else []

    async def add_payment_method(self, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        site_settings = await self.get_or_create()
        method = normalize_payment_method({k: v for k, v in data.items() if k != "id"})
        site_settings.payments = [*site_settings.payments, method]
        site_settings.updated_at = utcnow()
        await self.session.commit()
        logger.info("Payment method %s added (%s)", method["id"], method.get("method"))
        return list(site_settings.payments)

    async def delete_payment_method(self, method_id: str) -> None:
        site_settings = await self.find()
        if site_settings is None:
            raise NotFoundError("Settings not found")
        site_settings.payments = [p for p in site_settings.payments if str(p.get("id")) != method_id]
        site_settings.updated_at = utcnow()
        await self.session.commit()
