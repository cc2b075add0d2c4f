"""
Отдача изображений, хранящихся inline (base64) в записях.

При хранении на внешнем хостинге в записях нет image_data и эндпоинты отвечают 404.
"""

from __future__ import annotations

from fastapi import APIRouter, Response

from rescue.api.dependencies import SessionDep
from rescue.services.images import load_inline_image

router = APIRouter(prefix="/api", tags=["images"])

CACHE_HEADERS = {"Cache-Control": "public, max-age=86400"}


async def _image_response(session, kind: str, record_id: str) -> Response:
    data, content_type = await load_inline_image(session, kind, record_id)
    return Response(content=data, media_type=content_type, headers=CACHE_HEADERS)


@router.get("/image/{record_id}")
async def animal_image(record_id: str, session: SessionDep):
    return await _image_response(session, "animal", record_id)


@router.get("/news-image/{record_id}")
async def news_image(record_id: str, session: SessionDep):
    return await _image_response(session, "news", record_id)


@router.get("/giftcard-image/{record_id}")
async def giftcard_image(record_id: str, session: SessionDep):
    return await _image_response(session, "giftcard", record_id)
