import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.utils.realtime_bus import NoopBus, publish_user_event


class RecordingBus:

    enabled = True

    def __init__(self, fail: bool = False) -> None:
        self.published = []
        self.fail = fail

    async def publish(self, channel: str, message: str) -> None:
        if self.fail:
            raise RedisConnectionError("redis is down")
        self.published.append((channel, json.loads(message)))


@pytest.mark.asyncio
async def test_publish_user_event_targets_user_channel():
    bus = RecordingBus()
    assert await publish_user_event("bob", "message.created", {"conversation_id": "c1"}, bus=bus)
    assert bus.published == [("user:bob", {"type": "message.created", "conversation_id": "c1"})]


@pytest.mark.asyncio
async def test_disabled_bus_publishes_nothing():
    assert not await publish_user_event("bob", "message.created", {}, bus=NoopBus())


@pytest.mark.asyncio
async def test_publish_failure_is_reported_not_raised():
    assert not await publish_user_event("bob", "message.created", {}, bus=RecordingBus(fail=True))
