"""Room Command Queue — per-room serialization of mutating commands.

Invariants:
    - Commands for the same room key run one at a time, in arrival order
    - Commands for different rooms never wait on each other
    - Scope is one process; cross-process safety comes from storage constraints

Design Decisions:
    - asyncio.Lock per room instead of row locks: the storage contract offers
      single-row writes only, so a multi-step command (eliminate + purge +
      advance round) is made atomic for in-process observers here
    - Locks are created lazily and dropped once idle to bound memory
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class RoomCommandQueue:
    """Serializes commands per room key (room code)."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def serialize(self, room_key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(room_key, asyncio.Lock())
        self._waiters[room_key] = self._waiters.get(room_key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[room_key] -= 1
            if self._waiters[room_key] == 0:
                del self._waiters[room_key]
                self._locks.pop(room_key, None)

    def pending(self, room_key: str) -> int:
        """Commands holding or waiting for the room's lock."""
        return self._waiters.get(room_key, 0)

    @property
    def busy_rooms(self) -> int:
        """Rooms with at least one command running or queued."""
        return len(self._waiters)


room_commands = RoomCommandQueue()
