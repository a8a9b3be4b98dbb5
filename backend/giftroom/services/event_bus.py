"""Event Bus — serializes room events and fans them out to every live sink of a room.

Invariants:
    - publish never awaits: each sink write is non-blocking (fire-and-forget)
    - A failing sink is unregistered and closed; delivery to the others continues
    - Sink failures never propagate to the caller of publish
    - close_room delivers the final event to every sink before closing them

Design Decisions:
    - Serialize once per publish, not once per subscriber
    - Broad except around sink.send: sinks are pluggable, and any failure of one
      subscriber is contained to that subscriber
"""

import logging

from giftroom.core.domain_types import ConnectionId, RoomId
from giftroom.core.room_events import RoomEvent, event_type, sse_frame, to_payload
from giftroom.services.connection_registry import ConnectionRegistry, Sink

logger = logging.getLogger(__name__)


class EventBus:
    """Per-room fan-out over a ConnectionRegistry."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    def publish(self, room_id: RoomId, event: RoomEvent) -> int:
        """Deliver event to all sinks of room_id. Returns the number delivered."""
        frame = sse_frame(to_payload(event))
        delivered = 0
        for connection_id, sink in self.registry.sinks(room_id):
            if self._write(room_id, connection_id, sink, frame):
                delivered += 1
        logger.debug(
            "Event published",
            extra={
                "room_id": room_id, "event_type": event_type(event).value,
                "subscriber_count": delivered,
            },
        )
        return delivered

    def publish_to(
        self, room_id: RoomId, connection_id: ConnectionId, event: RoomEvent,
    ) -> bool:
        """Deliver event to a single registered sink."""
        sink = self.registry.get(room_id, connection_id)
        if sink is None:
            return False
        return self._write(room_id, connection_id, sink, sse_frame(to_payload(event)))

    def close_room(self, room_id: RoomId, final_event: RoomEvent) -> int:
        """Publish final_event, then detach and close every sink of the room."""
        delivered = self.publish(room_id, final_event)
        for _, sink in self.registry.drop_room(room_id):
            sink.close()
        logger.info(
            "Room subscribers closed",
            extra={"room_id": room_id, "subscriber_count": delivered},
        )
        return delivered

    def _write(
        self, room_id: RoomId, connection_id: ConnectionId, sink: Sink, frame: str,
    ) -> bool:
        try:
            sink.send(frame)
            return True
        except Exception as e:
            logger.warning(
                f"Dropping subscriber after failed write: {e}",
                extra={"room_id": room_id, "connection_id": connection_id},
            )
            self.registry.unregister(room_id, connection_id)
            try:
                sink.close()
            except Exception:
                logger.debug(
                    "Sink close failed",
                    extra={"connection_id": connection_id}, exc_info=True,
                )
            return False
