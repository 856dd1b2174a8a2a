from datetime import timedelta

from app.repositories.message_repository import MessageRepository
from app.utils.clock import Clock, utcnow


class RateLimiter:
    """Per-sender send quota derived from the message log.

    There is no counter: the count of the sender's messages inside the
    trailing window is the state. Two sends racing at the boundary can both
    pass, so the limit is best-effort.
    """

    def __init__(self, message_repo: MessageRepository, limit: int = 5, window: timedelta = timedelta(hours=24), clock: Clock = utcnow) -> None:
        self._message_repo = message_repo
        self.limit = limit
        self.window = window
        self._clock = clock

    async def count_recent(self, sender_id: str) -> int:
        since = self._clock() - self.window
        return await self._message_repo.count_sent_since(sender_id, since)

    async def remaining_quota(self, sender_id: str) -> int:
        return max(0, self.limit - await self.count_recent(sender_id))

    async def has_quota(self, sender_id: str) -> bool:
        return await self.remaining_quota(sender_id) > 0
