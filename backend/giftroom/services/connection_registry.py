"""Connection Registry — process-local map of live subscriber sinks grouped by room.

Invariants:
    - room_id -> {connection_id -> sink}; a room entry exists only while it has a sink
    - unregister of an unknown (room, connection) is a no-op
    - Not a source of truth: losing it loses only live streams, never room state
    - Single-process only: subscribers on another worker never see this registry

Design Decisions:
    - Plain dicts, no asyncio.Lock: every method is synchronous (no await inside), so
      cooperative scheduling already makes each call atomic
    - QueueSink bounded: a subscriber that stops reading fills its queue and is dropped
      instead of stalling the publisher
"""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator
from typing import Protocol

from giftroom.core.domain_types import ConnectionId, RoomId, UserId

logger = logging.getLogger(__name__)


class SinkClosedError(Exception):
    """Write to a sink whose consumer is gone or too slow."""


class Sink(Protocol):
    """One subscriber's outbound channel."""
    def send(self, frame: str) -> None: ...
    def close(self) -> None: ...


class QueueSink:
    """Sink backed by a bounded asyncio.Queue, drained by an SSE response generator.

    The queue holds maxsize frames plus one slot reserved for the end-of-stream
    marker, so closing never displaces a frame already accepted.
    """

    _CLOSE = None

    def __init__(self, maxsize: int = 100):
        self._maxsize = maxsize
        self._queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=maxsize + 1)
        self._closed = False
        self._terminated = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, frame: str) -> None:
        if self._closed:
            raise SinkClosedError("sink is closed")
        if self._queue.qsize() >= self._maxsize:
            self._closed = True
            raise SinkClosedError("subscriber queue is full")
        self._queue.put_nowait(frame)

    def close(self) -> None:
        """Mark closed and wake the reader. Frames already queued are still delivered."""
        if self._terminated:
            return
        self._closed = True
        self._terminated = True
        self._queue.put_nowait(self._CLOSE)

    async def frames(self) -> AsyncIterator[str]:
        while True:
            frame = await self._queue.get()
            if frame is self._CLOSE:
                return
            yield frame


class ConnectionRegistry:
    """Live subscriber sinks per room."""

    def __init__(self):
        self._rooms: dict[RoomId, dict[ConnectionId, Sink]] = {}

    @staticmethod
    def new_connection_id(user_id: UserId) -> ConnectionId:
        return ConnectionId(f"{user_id}_{uuid.uuid4().hex[:12]}")

    def register(
        self, room_id: RoomId, connection_id: ConnectionId, sink: Sink,
    ) -> None:
        self._rooms.setdefault(room_id, {})[connection_id] = sink
        logger.info(
            "Subscriber registered",
            extra={
                "room_id": room_id, "connection_id": connection_id,
                "subscriber_count": self.count(room_id),
            },
        )

    def unregister(
        self, room_id: RoomId, connection_id: ConnectionId,
    ) -> Sink | None:
        sinks = self._rooms.get(room_id)
        if not sinks:
            return None
        sink = sinks.pop(connection_id, None)
        if not sinks:
            del self._rooms[room_id]
        if sink is not None:
            logger.info(
                "Subscriber unregistered",
                extra={
                    "room_id": room_id, "connection_id": connection_id,
                    "subscriber_count": self.count(room_id),
                },
            )
        return sink

    def drop_room(self, room_id: RoomId) -> list[tuple[ConnectionId, Sink]]:
        """Remove every sink of a room and return them."""
        return list(self._rooms.pop(room_id, {}).items())

    def sinks(self, room_id: RoomId) -> list[tuple[ConnectionId, Sink]]:
        """Copy of the room's sinks, safe to iterate while unregistering."""
        return list(self._rooms.get(room_id, {}).items())

    def get(self, room_id: RoomId, connection_id: ConnectionId) -> Sink | None:
        return self._rooms.get(room_id, {}).get(connection_id)

    def count(self, room_id: RoomId) -> int:
        return len(self._rooms.get(room_id, {}))

    def rooms(self) -> set[RoomId]:
        return set(self._rooms)

    def close_all(self) -> None:
        """Close every sink (server shutdown)."""
        for room_id in self.rooms():
            for _, sink in self.drop_room(room_id):
                sink.close()
