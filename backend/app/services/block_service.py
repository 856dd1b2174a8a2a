from typing import Set

from app.repositories.block_repository import BlockRepository


class BlockRegistry:
    """Read side of the directed block edges.

    Edges are stored one-way; symmetry is applied here at query time.
    """

    def __init__(self, block_repo: BlockRepository) -> None:
        self._block_repo = block_repo

    async def has_blocked(self, blocker_id: str, blocked_id: str) -> bool:
        return await self._block_repo.exists(blocker_id, blocked_id)

    async def is_blocked_either_way(self, user_a: str, user_b: str) -> bool:
        if await self._block_repo.exists(user_a, user_b):
            return True
        return await self._block_repo.exists(user_b, user_a)

    async def blocked_counterparts(self, user_id: str) -> Set[str]:
        return await self._block_repo.counterparts_of(user_id)
