from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.schemas.chat import (
    ConversationHeader,
    ConversationList,
    GetOrCreateRequest,
    GetOrCreateResponse,
    MarkReadResponse,
    MessagePage,
)
from app.services.chat_service import ChatService
from app.utils.dependencies import get_chat_service, get_current_user_id
from app.utils.errors import ConversationNotFound
from app.utils.query import Ready


router = APIRouter(prefix="/conversations", tags=["chat"])


@router.get("", response_model=ConversationList)
async def list_conversations(current_user_id: str = Depends(get_current_user_id), service: ChatService = Depends(get_chat_service)):
    items = await service.list_conversations(current_user_id)
    return {"items": items}


@router.post("", response_model=GetOrCreateResponse)
async def get_or_create_conversation(body: GetOrCreateRequest, current_user_id: str = Depends(get_current_user_id), service: ChatService = Depends(get_chat_service)):
    convo = await service.get_or_create_conversation(current_user_id, body.other_user_id)
    return {"conversation_id": str(convo["_id"])}


@router.get("/{conversation_id}", response_model=ConversationHeader)
async def get_conversation(conversation_id: str, current_user_id: str = Depends(get_current_user_id), service: ChatService = Depends(get_chat_service)):
    result = await service.get_conversation(current_user_id, conversation_id)
    header = result.value if isinstance(result, Ready) else None
    if header is None:
        raise ConversationNotFound()
    return header


@router.get("/{conversation_id}/messages", response_model=MessagePage)
async def list_messages(conversation_id: str, limit: int = Query(50, ge=1, le=200), cursor: Optional[str] = None, current_user_id: str = Depends(get_current_user_id), service: ChatService = Depends(get_chat_service)):
    return await service.list_messages(current_user_id, conversation_id, limit=limit, cursor=cursor)


@router.post("/{conversation_id}/read", response_model=MarkReadResponse)
async def mark_conversation_read(conversation_id: str, current_user_id: str = Depends(get_current_user_id), service: ChatService = Depends(get_chat_service)):
    count = await service.mark_conversation_read(current_user_id, conversation_id)
    return {"marked_count": count}
