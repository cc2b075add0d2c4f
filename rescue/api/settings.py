"""
Настройки сайта для страницы checkout (полная замена при сохранении).
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from rescue.api.dependencies import get_site_settings_service
from rescue.api.schemas import SettingsIn, SettingsOut
from rescue.services.site_settings import SiteSettingsService

router = APIRouter(prefix="/settings", tags=["settings"])

ServiceDep = Annotated[SiteSettingsService, Depends(get_site_settings_service)]


@router.get("", response_model=SettingsOut)
async def get_settings(service: ServiceDep):
    site_settings = await service.find()
    if site_settings is None:
        return SettingsOut()
    return SettingsOut(email=site_settings.email, payments=site_settings.payments)


@router.post("", response_model=SettingsOut)
async def replace_settings(payload: SettingsIn, service: ServiceDep):
    site_settings = await service.replace(
        payload.email,
        [method.as_document() for method in payload.payments],
    )
    return SettingsOut(email=site_settings.email, payments=site_settings.payments)
