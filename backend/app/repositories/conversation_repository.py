import logging
from datetime import datetime
from typing import Any, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from app.models.conversation import ConversationDocument


logger = logging.getLogger(__name__)


def pair_key(user_a: str, user_b: str) -> str:
    lo, hi = sorted([user_a, user_b])
    return f"{lo}:{hi}"


def to_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class ConversationRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["conversations"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("pair_key", ASCENDING)], unique=True, name="uniq_pair_key")
        await self.collection.create_index([("participants", ASCENDING)])
        await self.collection.create_index([("last_message_at", DESCENDING)])

    async def get_or_create_one_to_one(self, user_a: str, user_b: str, now: datetime) -> Tuple[ConversationDocument, bool]:
        """Return ``(conversation, created)`` for the unordered pair.

        The unique index on ``pair_key`` decides concurrent creations: the
        losing insert gets a DuplicateKeyError and reads back the winner.
        """
        key = pair_key(user_a, user_b)
        existing = await self._find_by_pair(key)
        if existing:
            return existing, False
        doc: ConversationDocument = {
            "participants": sorted([user_a, user_b]),
            "pair_key": key,
            "created_at": now,
            "last_message_at": now,
        }
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            logger.debug("Lost conversation create race for %s, reading winner", key)
            winner = await self._find_by_pair(key)
            if winner is None:
                raise
            return winner, False
        doc["_id"] = result.inserted_id
        return doc, True

    async def _find_by_pair(self, key: str) -> Optional[ConversationDocument]:
        return await self.collection.find_one({"pair_key": key})

    async def get_by_id(self, conversation_id: Any) -> Optional[ConversationDocument]:
        oid = to_object_id(conversation_id)
        if oid is None:
            return None
        return await self.collection.find_one({"_id": oid})

    async def touch_last_message_at(self, conversation_id: ObjectId, now: datetime) -> bool:
        # Conditional so concurrent senders can only move the timestamp forward.
        result = await self.collection.update_one(
            {"_id": conversation_id, "last_message_at": {"$lt": now}},
            {"$set": {"last_message_at": now}},
        )
        return bool(result.modified_count)

    async def list_for_user(self, user_id: str) -> List[ConversationDocument]:
        sort = [("last_message_at", DESCENDING), ("_id", DESCENDING)]
        items: List[ConversationDocument] = []
        async for doc in self.collection.find({"participants": user_id}).sort(sort):
            items.append(doc)
        return items
