from fastapi import APIRouter, Depends

from app.core.config import settings
from app.schemas.chat import QuotaResponse, SendMessageRequest, SendMessageResponse, UnreadCountResponse
from app.services.chat_service import ChatService
from app.utils.dependencies import get_chat_service, get_current_user_id
from app.utils.realtime_bus import publish_user_event


router = APIRouter(prefix="/messages", tags=["chat"])


@router.post("", response_model=SendMessageResponse, status_code=201)
async def send_message(body: SendMessageRequest, current_user_id: str = Depends(get_current_user_id), service: ChatService = Depends(get_chat_service)):
    result = await service.send_message(current_user_id, body.recipient_id, body.content)
    # notification delivery picks this up; the message is already stored
    await publish_user_event(
        body.recipient_id,
        "message.created",
        {"from": current_user_id, "conversation_id": result.conversation_id, "message_id": result.message_id},
    )
    return {"conversation_id": result.conversation_id, "message_id": result.message_id}


@router.get("/unread_count", response_model=UnreadCountResponse)
async def unread_count(current_user_id: str = Depends(get_current_user_id), service: ChatService = Depends(get_chat_service)):
    return {"count": await service.unread_count(current_user_id)}


@router.get("/quota", response_model=QuotaResponse)
async def quota(current_user_id: str = Depends(get_current_user_id), service: ChatService = Depends(get_chat_service)):
    remaining = await service.remaining_quota(current_user_id)
    return {"remaining": remaining, "limit": settings.RATE_LIMIT_MAX_MESSAGES, "window_hours": settings.RATE_LIMIT_WINDOW_HOURS}
