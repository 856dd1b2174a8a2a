from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.user import ParticipantProfile


class SendMessageRequest(BaseModel):

    recipient_id: str = Field(min_length=1)
    # length rules are applied after trimming by the service
    content: str


class SendMessageResponse(BaseModel):

    conversation_id: str
    message_id: str


class GetOrCreateRequest(BaseModel):

    other_user_id: str = Field(min_length=1)


class GetOrCreateResponse(BaseModel):

    conversation_id: str


class ConversationSummary(BaseModel):

    id: str
    created_at: datetime
    last_message_at: datetime
    participant: ParticipantProfile
    last_message_preview: Optional[str] = None
    last_message_sender_id: Optional[str] = None
    unread_count: int = 0


class ConversationList(BaseModel):

    items: List[ConversationSummary]


class ConversationHeader(BaseModel):

    id: str
    created_at: datetime
    last_message_at: datetime
    participant: ParticipantProfile


class MessageOut(BaseModel):

    id: str
    conversation_id: str
    sender_id: str
    content: str
    created_at: datetime
    read_at: Optional[datetime] = None
    sender: Optional[ParticipantProfile] = None
    is_own_message: bool = False


class MessagePage(BaseModel):

    messages: List[MessageOut] = []
    next_cursor: Optional[str] = None


class MarkReadResponse(BaseModel):

    marked_count: int


class UnreadCountResponse(BaseModel):

    count: int


class QuotaResponse(BaseModel):

    remaining: int
    limit: int
    window_hours: int
