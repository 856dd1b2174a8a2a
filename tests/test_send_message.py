"""Tests for sending: validation, blocking and the rolling quota."""

import pytest

from app.services.block_service import BlockRegistry
from app.utils.errors import (
    BlockedError,
    ContentTooLongError,
    EmptyContentError,
    NotAuthenticated,
    RateLimitExceeded,
    SelfTargetError,
)


@pytest.mark.asyncio
async def test_send_creates_conversation_and_message(service, db, clock):
    result = await service.send_message("alice", "bob", "  hi  ")

    convo = await db["conversations"].find_one({})
    assert str(convo["_id"]) == result.conversation_id
    message = await db["messages"].find_one({})
    assert str(message["_id"]) == result.message_id
    assert message["content"] == "hi"
    assert message["sender_id"] == "alice"
    assert message["read_at"] is None
    assert message["created_at"] == clock.now


@pytest.mark.asyncio
async def test_send_reuses_existing_conversation_and_bumps_timestamp(service, db, clock):
    first = await service.send_message("alice", "bob", "one")
    later = clock.advance(minutes=5)
    second = await service.send_message("bob", "alice", "two")

    assert first.conversation_id == second.conversation_id
    convo = await db["conversations"].find_one({})
    assert convo["last_message_at"] == later
    assert convo["created_at"] < later


@pytest.mark.asyncio
async def test_last_message_at_never_moves_backwards(service, db, clock):
    await service.send_message("alice", "bob", "one")
    newest = clock.now
    clock.advance(minutes=-10)
    await service.send_message("bob", "alice", "late arrival")

    convo = await db["conversations"].find_one({})
    assert convo["last_message_at"] == newest


@pytest.mark.asyncio
async def test_send_to_self_rejected(service):
    with pytest.raises(SelfTargetError):
        await service.send_message("alice", "alice", "hi")


@pytest.mark.asyncio
async def test_send_requires_identity(service):
    with pytest.raises(NotAuthenticated):
        await service.send_message(None, "bob", "hi")


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", "\n\t "])
async def test_empty_content_rejected(service, db, content):
    with pytest.raises(EmptyContentError):
        await service.send_message("alice", "bob", content)
    assert await db["conversations"].count_documents({}) == 0


@pytest.mark.asyncio
async def test_content_length_boundary(service, db):
    with pytest.raises(ContentTooLongError):
        await service.send_message("alice", "bob", "x" * 2001)

    await service.send_message("alice", "bob", "x" * 2000)
    message = await db["messages"].find_one({})
    assert len(message["content"]) == 2000


@pytest.mark.asyncio
async def test_length_is_checked_after_trimming(service):
    await service.send_message("alice", "bob", "  " + "y" * 2000 + "  ")


@pytest.mark.asyncio
async def test_block_is_enforced_in_both_directions(service, blocks, clock):
    await blocks.create_block("bob", "alice", clock())

    with pytest.raises(BlockedError) as blocked_sender:
        await service.send_message("alice", "bob", "hello?")
    with pytest.raises(BlockedError) as blocker:
        await service.send_message("bob", "alice", "hello?")

    assert blocked_sender.value.reason == "You cannot send messages to this user"
    assert blocker.value.reason == "You have blocked this user"


@pytest.mark.asyncio
async def test_block_does_not_delete_history(service, blocks, db, clock):
    await service.send_message("alice", "bob", "before the block")
    await blocks.create_block("bob", "alice", clock())

    assert await db["conversations"].count_documents({}) == 1
    assert await db["messages"].count_documents({}) == 1


@pytest.mark.asyncio
async def test_unblock_restores_sending(service, blocks, clock):
    await blocks.create_block("alice", "bob", clock())
    assert await blocks.remove_block("alice", "bob")

    await service.send_message("alice", "bob", "back again")


@pytest.mark.asyncio
async def test_block_registry_checks_directed_edges(blocks, clock):
    registry = BlockRegistry(blocks)
    assert await blocks.create_block("alice", "bob", clock())
    assert not await blocks.create_block("alice", "bob", clock())

    assert await registry.has_blocked("alice", "bob")
    assert not await registry.has_blocked("bob", "alice")
    assert await registry.is_blocked_either_way("bob", "alice")
    assert not await registry.is_blocked_either_way("alice", "carol")
    assert await registry.blocked_counterparts("bob") == {"alice"}


@pytest.mark.asyncio
async def test_sixth_message_in_a_day_is_rejected(service, clock):
    for i in range(5):
        await service.send_message("alice", f"user{i}", "hi")
        clock.advance(minutes=1)

    with pytest.raises(RateLimitExceeded):
        await service.send_message("alice", "bob", "one too many")


@pytest.mark.asyncio
async def test_quota_restored_when_oldest_message_ages_out(service, clock):
    for _ in range(5):
        await service.send_message("alice", "bob", "hi")
        clock.advance(hours=1)
    assert await service.remaining_quota("alice") == 0

    # first message was sent at t0; at t0 + 24h it is still inside the window
    clock.advance(hours=19)
    assert await service.remaining_quota("alice") == 0
    clock.advance(seconds=1)
    assert await service.remaining_quota("alice") == 1
    await service.send_message("alice", "bob", "quota is back")


@pytest.mark.asyncio
async def test_quota_is_per_sender(service):
    for _ in range(5):
        await service.send_message("alice", "bob", "hi")

    await service.send_message("bob", "alice", "my own quota")
    assert await service.remaining_quota("bob") == 4


@pytest.mark.asyncio
async def test_rejected_sends_do_not_consume_quota(service, blocks, clock):
    await blocks.create_block("carol", "alice", clock())
    for _ in range(3):
        with pytest.raises(BlockedError):
            await service.send_message("alice", "carol", "hi")

    assert await service.remaining_quota("alice") == 5
