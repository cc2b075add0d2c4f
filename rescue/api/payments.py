"""
Способы оплаты, показываемые на странице checkout.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List

from fastapi import APIRouter, Depends

from rescue.api.dependencies import get_site_settings_service
from rescue.api.schemas import PaymentMethodIn, SuccessResponse
from rescue.services.site_settings import SiteSettingsService

router = APIRouter(prefix="/payments", tags=["payments"])

ServiceDep = Annotated[SiteSettingsService, Depends(get_site_settings_service)]


@router.get("", response_model=List[Dict[str, Any]])
async def list_payment_methods(service: ServiceDep):
    return await service.list_payment_methods()


@router.post("", response_model=List[Dict[str, Any]])
async def add_payment_method(payload: PaymentMethodIn, service: ServiceDep):
    return await service.add_payment_method(payload.as_document())


@router.delete("/{method_id}", response_model=SuccessResponse)
async def delete_payment_method(method_id: str, service: ServiceDep):
    await service.delete_payment_method(method_id)
    return SuccessResponse()
