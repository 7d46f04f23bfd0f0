"""Fake storage wrappers for exercising degraded-mode paths."""

from wolfgame.core.domain_types import Table
from wolfgame.core.errors import StorageUnavailable


class RevealFailingStorage:
    """Delegates to real storage but fails every reveal write."""

    def __init__(self, inner):
        self._inner = inner

    async def update(self, table, filter, patch):
        if table == Table.ROOMS and patch.get("revealed_target_id") is not None:
            raise StorageUnavailable("simulated outage", "update")
        return await self._inner.update(table, filter, patch)

    def __getattr__(self, name):
        return getattr(self._inner, name)
