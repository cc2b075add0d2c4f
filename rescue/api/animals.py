"""
Карточки животных.
"""

from __future__ import annotations

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from rescue.api.dependencies import SettingsDep, get_animal_service
from rescue.api.schemas import AnimalOut, SuccessResponse
from rescue.services.catalog import AnimalService
from rescue.services.images import staged_upload

router = APIRouter(prefix="/animals", tags=["animals"])

ServiceDep = Annotated[AnimalService, Depends(get_animal_service)]


@router.get("", response_model=List[AnimalOut])
async def list_animals(service: ServiceDep):
    return await service.list_animals()


@router.post("", response_model=AnimalOut)
async def create_animal(
    service: ServiceDep,
    config: SettingsDep,
    title: Annotated[Optional[str], Form()] = None,
    description: Annotated[Optional[str], Form()] = None,
    price: Annotated[Optional[str], Form()] = None,
    payments: Annotated[Optional[str], Form()] = None,
    image: Annotated[Optional[UploadFile], File()] = None,
):
    async with staged_upload(image, config, field="image") as staged:
        return await service.create(
            title=title,
            description=description,
            price=price,
            payments=payments,
            image=staged.read_bytes(),
            content_type=staged.content_type,
        )


@router.delete("/{animal_id}", response_model=SuccessResponse)
async def delete_animal(animal_id: str, service: ServiceDep):
    await service.delete(animal_id)
    return SuccessResponse()
