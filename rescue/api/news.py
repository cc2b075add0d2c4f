"""
Новости приюта.
"""

from __future__ import annotations

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from rescue.api.dependencies import SettingsDep, get_news_service
from rescue.api.schemas import NewsOut, SuccessResponse
from rescue.services.catalog import NewsService
from rescue.services.images import staged_upload

router = APIRouter(prefix="/news", tags=["news"])

ServiceDep = Annotated[NewsService, Depends(get_news_service)]


@router.get("", response_model=List[NewsOut])
async def list_news(service: ServiceDep):
    return await service.list_news()


@router.post("", response_model=NewsOut)
async def create_news(
    service: ServiceDep,
    config: SettingsDep,
    title: Annotated[Optional[str], Form()] = None,
    content: Annotated[Optional[str], Form()] = None,
    image_url: Annotated[Optional[str], Form(alias="imageUrl")] = None,
    image: Annotated[Optional[UploadFile], File()] = None,
):
    """Файл картинки необязателен: без него берётся imageUrl или картинка по умолчанию."""
    if image is None or not image.filename:
        return await service.create(title=title, content=content, image_url=image_url)

    async with staged_upload(image, config, field="image") as staged:
        return await service.create(
            title=title,
            content=content,
            image=staged.read_bytes(),
            content_type=staged.content_type,
        )


@router.delete("/{news_id}", response_model=SuccessResponse)
async def delete_news(news_id: str, service: ServiceDep):
    await service.delete(news_id)
    return SuccessResponse()
