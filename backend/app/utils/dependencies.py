from datetime import timedelta
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.database.connection import mongo_db_dependency
from app.repositories.block_repository import BlockRepository
from app.repositories.conversation_repository import ConversationRepository
from app.repositories.message_repository import MessageRepository
from app.repositories.user_repository import UserRepository
from app.services.block_service import BlockRegistry
from app.services.chat_service import ChatService
from app.services.profile_service import ProfileService
from app.services.rate_limiter import RateLimiter
from app.utils.errors import NotAuthenticated
from app.utils.security import decode_access_token


bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> str:
    if credentials is None or not credentials.credentials:
        raise NotAuthenticated()
    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    if not sub:
        raise NotAuthenticated("Token has no subject")
    return str(sub)


def get_chat_service(db=Depends(mongo_db_dependency)) -> ChatService:
    message_repo = MessageRepository(db)
    rate_limiter = RateLimiter(
        message_repo,
        limit=settings.RATE_LIMIT_MAX_MESSAGES,
        window=timedelta(hours=settings.RATE_LIMIT_WINDOW_HOURS),
    )
    return ChatService(
        message_repo,
        ConversationRepository(db),
        BlockRegistry(BlockRepository(db)),
        rate_limiter,
        ProfileService(UserRepository(db), media_base_url=settings.MEDIA_BASE_URL),
        max_content_length=settings.MAX_CONTENT_LENGTH,
        preview_length=settings.PREVIEW_LENGTH,
    )
