import os
from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from bson import ObjectId
from mongomock_motor import AsyncMongoMockClient

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-for-the-direct-messages-suite")

from app.database.connection import ensure_indexes  # noqa: E402
from app.repositories.block_repository import BlockRepository  # noqa: E402
from app.repositories.conversation_repository import ConversationRepository  # noqa: E402
from app.repositories.message_repository import MessageRepository  # noqa: E402
from app.repositories.user_repository import UserRepository  # noqa: E402
from app.services.block_service import BlockRegistry  # noqa: E402
from app.services.chat_service import ChatService  # noqa: E402
from app.services.profile_service import ProfileService  # noqa: E402
from app.services.rate_limiter import RateLimiter  # noqa: E402


class FakeClock:
    """Manually advanced clock, whole seconds so values survive MongoDB's ms rounding."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest_asyncio.fixture
async def db():
    client = AsyncMongoMockClient()
    database = client["test_direct_messages"]
    await ensure_indexes(database)
    return database


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def blocks(db):
    return BlockRepository(db)


@pytest.fixture
def make_service(db, clock):
    def _make(limit: int = 5) -> ChatService:
        message_repo = MessageRepository(db)
        return ChatService(
            message_repo,
            ConversationRepository(db),
            BlockRegistry(BlockRepository(db)),
            RateLimiter(message_repo, limit=limit, window=timedelta(hours=24), clock=clock),
            ProfileService(UserRepository(db), media_base_url="https://cdn.example.com/avatars"),
            clock=clock,
        )

    return _make


@pytest.fixture
def service(make_service):
    return make_service()


@pytest_asyncio.fixture
async def users(db):
    """Two users with profiles: alice has an external avatar, bob a stored one."""
    alice = ObjectId()
    bob = ObjectId()
    await db["users"].insert_many(
        [
            {"_id": alice, "full_name": "Alice", "avatar_url": "https://img.example.com/alice.png"},
            {"_id": bob, "full_name": "Bob", "avatar_key": "bob.jpg"},
        ]
    )
    return str(alice), str(bob)
