from datetime import datetime
from typing import Set

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from app.models.block import BlockDocument


class BlockRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db.get_collection("blocks")

    async def ensure_indexes(self) -> None:
        await self._collection.create_index(
            [("blocker_id", ASCENDING), ("blocked_id", ASCENDING)], unique=True, name="uniq_block_edge"
        )
        await self._collection.create_index([("blocked_id", ASCENDING)])

    async def exists(self, blocker_id: str, blocked_id: str) -> bool:
        doc = await self._collection.find_one({"blocker_id": blocker_id, "blocked_id": blocked_id})
        return doc is not None

    async def counterparts_of(self, user_id: str) -> Set[str]:
        """Ids that ``user_id`` blocked plus ids that blocked ``user_id``."""
        ids: Set[str] = set()
        cursor = self._collection.find({"$or": [{"blocker_id": user_id}, {"blocked_id": user_id}]})
        async for doc in cursor:
            if doc["blocker_id"] == user_id:
                ids.add(doc["blocked_id"])
            else:
                ids.add(doc["blocker_id"])
        return ids

    # Writes below belong to the moderation flow; messaging only reads blocks.

    async def create_block(self, blocker_id: str, blocked_id: str, now: datetime) -> bool:
        doc: BlockDocument = {"blocker_id": blocker_id, "blocked_id": blocked_id, "created_at": now}
        try:
            await self._collection.insert_one(doc)
        except DuplicateKeyError:
            return False
        return True

    async def remove_block(self, blocker_id: str, blocked_id: str) -> bool:
        result = await self._collection.delete_one({"blocker_id": blocker_id, "blocked_id": blocked_id})
        return result.deleted_count > 0
