import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.core.config import settings


logger = logging.getLogger(__name__)


class NoopBus:

    enabled = False

    async def publish(self, channel: str, message: str) -> None:
        return

    async def close(self) -> None:
        return


class RedisBus:
    """Fan-out of messaging events to whoever delivers notifications."""

    enabled = True

    def __init__(self, url: str) -> None:
        self._redis = redis.from_url(url)

    async def publish(self, channel: str, message: str) -> None:
        await self._redis.publish(channel, message)

    async def close(self) -> None:
        await self._redis.aclose()


_bus = None


def get_bus():
    global _bus
    if _bus is None:
        _bus = RedisBus(settings.REDIS_URL) if settings.REDIS_URL else NoopBus()
    return _bus


async def close_bus() -> None:
    global _bus
    if _bus is not None:
        await _bus.close()
        _bus = None


async def publish_user_event(user_id: str, event: str, data: Dict[str, Any], bus: Optional[Any] = None) -> bool:
    """Publish ``event`` on ``user:<id>``. Returns False when delivery failed.

    Notification delivery lives outside this service, so a broken bus is
    logged and reported but never fails the request that produced the event.
    """
    bus = bus or get_bus()
    if not getattr(bus, "enabled", False):
        return False
    payload = json.dumps({"type": event, **data})
    try:
        await bus.publish(f"user:{user_id}", payload)
    except RedisError:
        logger.warning("Failed to publish %s for %s", event, user_id, exc_info=True)
        return False
    return True
