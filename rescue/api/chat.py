"""
Чат посетителей с администратором.
"""

from __future__ import annotations

from typing import Annotated, List

from fastapi import APIRouter, Depends

from rescue.api.dependencies import get_chat_service
from rescue.api.schemas import ChatCreate, ChatOut, ChatReply
from rescue.services.chats import ChatService

router = APIRouter(prefix="/chat", tags=["chat"])

ServiceDep = Annotated[ChatService, Depends(get_chat_service)]


@router.get("", response_model=List[ChatOut])
async def list_chats(service: ServiceDep):
    """20 последних диалогов."""
    return await service.list_recent(limit=20)


@router.post("", response_model=ChatOut)
async def post_message(payload: ChatCreate, service: ServiceDep):
    return await service.post_message(payload.name, payload.email, payload.message)


@router.post("/{chat_id}/reply", response_model=ChatOut)
async def reply_to_chat(chat_id: str, payload: ChatReply, service: ServiceDep):
    """Ответ администратора из веб-админки."""
    return await service.post_admin_reply(chat_id, payload.message)
