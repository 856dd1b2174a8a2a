from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from app.models.message import MessageDocument


NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]


class MessageRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["messages"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index(
            [("conversation_id", ASCENDING), ("created_at", DESCENDING), ("_id", DESCENDING)]
        )
        await self.collection.create_index([("sender_id", ASCENDING), ("created_at", ASCENDING)])
        await self.collection.create_index(
            [("conversation_id", ASCENDING), ("sender_id", ASCENDING), ("read_at", ASCENDING)]
        )

    async def save_message(
        self,
        conversation_id: ObjectId,
        sender_id: str,
        content: str,
        now: datetime,
    ) -> MessageDocument:
        doc: MessageDocument = {
            "conversation_id": conversation_id,
            "sender_id": sender_id,
            "content": content,
            "created_at": now,
            "read_at": None,
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    async def get_in_conversation(self, conversation_id: ObjectId, message_id: Any) -> Optional[MessageDocument]:
        if not isinstance(message_id, ObjectId):
            if not ObjectId.is_valid(message_id):
                return None
            message_id = ObjectId(message_id)
        return await self.collection.find_one({"_id": message_id, "conversation_id": conversation_id})

    async def get_page_newest_first(
        self,
        conversation_id: ObjectId,
        limit: int,
        before: Optional[MessageDocument] = None,
    ) -> List[MessageDocument]:
        """Messages newest-first, strictly older than ``before`` when given.

        Ordering is ``(created_at, _id)`` so equal timestamps still page
        deterministically.
        """
        query: Dict[str, Any] = {"conversation_id": conversation_id}
        if before is not None:
            query["$or"] = [
                {"created_at": {"$lt": before["created_at"]}},
                {"created_at": before["created_at"], "_id": {"$lt": before["_id"]}},
            ]
        cur = self.collection.find(query).sort(NEWEST_FIRST).limit(limit)
        return await cur.to_list(length=limit)

    async def get_latest(self, conversation_id: ObjectId) -> Optional[MessageDocument]:
        items = await self.get_page_newest_first(conversation_id, 1)
        return items[0] if items else None

    async def count_unread(self, conversation_id: ObjectId, reader_id: str) -> int:
        return await self.collection.count_documents(
            {"conversation_id": conversation_id, "sender_id": {"$ne": reader_id}, "read_at": None}
        )

    async def count_sent_since(self, sender_id: str, since: datetime) -> int:
        return await self.collection.count_documents({"sender_id": sender_id, "created_at": {"$gte": since}})

    async def mark_read(self, conversation_id: ObjectId, reader_id: str, now: datetime) -> int:
        """Mark every unread message from the other side as read.

        ``read_at`` is only set on unread messages, so it never regresses. A
        message stamped ahead of the reader's clock is read at its own
        ``created_at`` so ``read_at`` never precedes it.
        """
        unread: Dict[str, Any] = {
            "conversation_id": conversation_id,
            "sender_id": {"$ne": reader_id},
            "read_at": None,
        }
        result = await self.collection.update_many(
            {**unread, "created_at": {"$lte": now}},
            {"$set": {"read_at": now}},
        )
        marked = result.modified_count or 0
        async for doc in self.collection.find({**unread, "created_at": {"$gt": now}}, {"created_at": 1}):
            ahead = await self.collection.update_one(
                {"_id": doc["_id"], "read_at": None},
                {"$set": {"read_at": doc["created_at"]}},
            )
            marked += ahead.modified_count or 0
        return marked
