"""Room Locks — per-room asyncio mutex held for the whole of a mutating operation.

Invariants:
    - At most one coordinator mutation per room runs at a time in this process
    - Lock entries exist only while held or awaited (reference counted)
    - Different rooms never block each other

Design Decisions:
    - In-process mutex complements the row lock (SELECT ... FOR UPDATE) taken inside
      the transaction: the mutex orders same-process requests without holding a DB
      connection while waiting, the row lock covers other processes
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import asyncio

from giftroom.core.domain_types import RoomId


class RoomLocks:
    def __init__(self):
        self._locks: dict[RoomId, asyncio.Lock] = {}
        self._refs: dict[RoomId, int] = {}

    @asynccontextmanager
    async def hold(self, room_id: RoomId) -> AsyncIterator[None]:
        lock = self._locks.setdefault(room_id, asyncio.Lock())
        self._refs[room_id] = self._refs.get(room_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._refs[room_id] -= 1
            if self._refs[room_id] == 0:
                del self._refs[room_id]
                del self._locks[room_id]
