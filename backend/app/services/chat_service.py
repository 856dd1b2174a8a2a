import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from app.models.conversation import ConversationDocument
from app.repositories.conversation_repository import ConversationRepository
from app.repositories.message_repository import MessageRepository
from app.schemas.chat import ConversationHeader, ConversationSummary, MessageOut, MessagePage
from app.schemas.user import ParticipantProfile
from app.services.block_service import BlockRegistry
from app.services.profile_service import ProfileService
from app.services.rate_limiter import RateLimiter
from app.utils.clock import Clock, utcnow
from app.utils.errors import (
    BlockedError,
    ContentTooLongError,
    ConversationNotFound,
    EmptyContentError,
    MessagingError,
    NotAuthenticated,
    NotParticipant,
    RateLimitExceeded,
    SelfTargetError,
)
from app.utils.query import Query, skip_if_none


logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    conversation_id: str
    message_id: str


def make_preview(content: str, length: int = 50) -> str:
    if len(content) > length:
        return content[:length] + "..."
    return content


def counterpart_of(conversation: ConversationDocument, user_id: str) -> Optional[str]:
    for participant in conversation.get("participants", []):
        if participant != user_id:
            return participant
    return None


class ChatService:

    def __init__(
        self,
        message_repo: MessageRepository,
        conversation_repo: ConversationRepository,
        blocks: BlockRegistry,
        rate_limiter: RateLimiter,
        profiles: ProfileService,
        max_content_length: int = 2000,
        preview_length: int = 50,
        clock: Clock = utcnow,
    ) -> None:
        self._message_repo = message_repo
        self._conversation_repo = conversation_repo
        self._blocks = blocks
        self._rate_limiter = rate_limiter
        self._profiles = profiles
        self._max_content_length = max_content_length
        self._preview_length = preview_length
        self._clock = clock

    # -- writes ---------------------------------------------------------

    async def get_or_create_conversation(self, actor: Optional[str], other_id: str) -> ConversationDocument:
        actor = self._require_actor(actor)
        if actor == other_id:
            raise SelfTargetError("Cannot create conversation with yourself")
        convo, created = await self._conversation_repo.get_or_create_one_to_one(actor, other_id, self._clock())
        if created:
            logger.info("Conversation %s created", convo["_id"])
        return convo

    async def send_message(self, sender_id: Optional[str], recipient_id: str, content: str) -> SendResult:
        """Validate and append one message, creating the conversation on first contact.

        Checks run in a fixed order and the first failure wins: self target,
        content, blocks in both directions, then the rolling quota.
        """
        sender_id = self._require_actor(sender_id)
        try:
            if sender_id == recipient_id:
                raise SelfTargetError("Cannot send message to yourself")
            text = self._validate_content(content)
            if await self._blocks.has_blocked(sender_id, recipient_id):
                raise BlockedError("You have blocked this user")
            if await self._blocks.has_blocked(recipient_id, sender_id):
                raise BlockedError("You cannot send messages to this user")
            if not await self._rate_limiter.has_quota(sender_id):
                raise RateLimitExceeded(
                    f"Rate limit exceeded. You can only send {self._rate_limiter.limit} messages per day."
                )
        except MessagingError as exc:
            logger.warning("Rejected send from %s: %s", sender_id, exc.code)
            raise

        convo, created = await self._conversation_repo.get_or_create_one_to_one(sender_id, recipient_id, self._clock())
        if created:
            logger.info("Conversation %s created", convo["_id"])
        now = self._clock()
        saved = await self._message_repo.save_message(convo["_id"], sender_id, text, now)
        await self._conversation_repo.touch_last_message_at(convo["_id"], now)
        logger.info("Message %s sent in conversation %s", saved["_id"], convo["_id"])
        return SendResult(conversation_id=str(convo["_id"]), message_id=str(saved["_id"]))

    async def mark_conversation_read(self, actor: Optional[str], conversation_id: str) -> int:
        actor = self._require_actor(actor)
        convo = await self._conversation_repo.get_by_id(conversation_id)
        if convo is None:
            raise ConversationNotFound()
        if actor not in convo["participants"]:
            raise NotParticipant()
        return await self._message_repo.mark_read(convo["_id"], actor, self._clock())

    # -- reads ----------------------------------------------------------

    async def list_conversations(self, actor: Optional[str]) -> List[ConversationSummary]:
        actor = self._require_actor(actor)
        hidden = await self._blocks.blocked_counterparts(actor)
        summaries: List[ConversationSummary] = []
        for convo in await self._visible_conversations(actor, hidden):
            other_id = counterpart_of(convo, actor)
            last = await self._message_repo.get_latest(convo["_id"])
            summaries.append(
                ConversationSummary(
                    id=str(convo["_id"]),
                    created_at=convo["created_at"],
                    last_message_at=convo["last_message_at"],
                    participant=await self._profiles.profile_of(other_id),
                    last_message_preview=make_preview(last["content"], self._preview_length) if last else None,
                    last_message_sender_id=last["sender_id"] if last else None,
                    unread_count=await self._message_repo.count_unread(convo["_id"], actor),
                )
            )
        return summaries

    async def unread_count(self, actor: Optional[str]) -> int:
        actor = self._require_actor(actor)
        hidden = await self._blocks.blocked_counterparts(actor)
        total = 0
        for convo in await self._visible_conversations(actor, hidden):
            total += await self._message_repo.count_unread(convo["_id"], actor)
        return total

    async def list_messages(
        self,
        actor: Optional[str],
        conversation_id: str,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> MessagePage:
        actor = self._require_actor(actor)
        limit = max(1, limit)
        convo = await self._conversation_repo.get_by_id(conversation_id)
        # Unknown and foreign conversations look the same: an empty page.
        if convo is None or actor not in convo["participants"]:
            return MessagePage()

        before = None
        if cursor:
            # An unknown cursor restarts from the newest message.
            before = await self._message_repo.get_in_conversation(convo["_id"], cursor)
        items = await self._message_repo.get_page_newest_first(convo["_id"], limit + 1, before=before)
        page = items[:limit]
        next_cursor = str(page[-1]["_id"]) if len(items) > limit else None

        profiles: Dict[str, ParticipantProfile] = {}
        for participant in convo["participants"]:
            profiles[participant] = await self._profiles.profile_of(participant)
        messages = [
            MessageOut(
                id=str(m["_id"]),
                conversation_id=str(m["conversation_id"]),
                sender_id=m["sender_id"],
                content=m["content"],
                created_at=m["created_at"],
                read_at=m.get("read_at"),
                sender=profiles.get(m["sender_id"]),
                is_own_message=m["sender_id"] == actor,
            )
            for m in reversed(page)
        ]
        return MessagePage(messages=messages, next_cursor=next_cursor)

    async def get_conversation(self, actor: Optional[str], conversation_id: Optional[str]) -> "Query[Optional[ConversationHeader]]":
        actor = self._require_actor(actor)

        async def _header(cid: str) -> Optional[ConversationHeader]:
            convo = await self._conversation_repo.get_by_id(cid)
            if convo is None or actor not in convo["participants"]:
                return None
            other_id = counterpart_of(convo, actor)
            if await self._blocks.is_blocked_either_way(actor, other_id):
                return None
            return ConversationHeader(
                id=str(convo["_id"]),
                created_at=convo["created_at"],
                last_message_at=convo["last_message_at"],
                participant=await self._profiles.profile_of(other_id),
            )

        return await skip_if_none(conversation_id, _header)

    async def remaining_quota(self, actor: Optional[str]) -> int:
        return await self._rate_limiter.remaining_quota(self._require_actor(actor))

    # -- helpers --------------------------------------------------------

    def _require_actor(self, actor: Optional[str]) -> str:
        if not actor:
            raise NotAuthenticated()
        return actor

    def _validate_content(self, content: str) -> str:
        text = (content or "").strip()
        if not text:
            raise EmptyContentError()
        if len(text) > self._max_content_length:
            raise ContentTooLongError(
                f"Message content must be {self._max_content_length} characters or less"
            )
        return text

    async def _visible_conversations(self, actor: str, hidden: Set[str]) -> List[ConversationDocument]:
        # Blocking hides threads at read time; nothing is deleted.
        return [
            convo
            for convo in await self._conversation_repo.list_for_user(actor)
            if counterpart_of(convo, actor) not in hidden
        ]
