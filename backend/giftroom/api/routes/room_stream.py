"""Room Stream — SSE subscription to a room's live events.

Invariants:
    - The sink is registered before the room is checked, so a delete that commits
      during the check still reaches it; a missing room unregisters it (404)
    - The first frame on every stream is a `connected` event for that subscriber only
    - The sink is unregistered when the stream ends, whatever ended it
    - The request's DB session is released before streaming starts

Design Decisions:
    - StreamingResponse over a QueueSink: EventBus writes without awaiting, the
      response generator drains the queue at the client's pace
    - Session closed early: a stream may stay open for hours and must not pin a
      pooled connection
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from giftroom.api.dependencies import (
    get_connection_registry, get_coordinator, get_event_bus,
)
from giftroom.config import Settings, get_settings
from giftroom.core.domain_types import RoomId, UserId
from giftroom.core.room_events import Connected
from giftroom.services.connection_registry import ConnectionRegistry, QueueSink
from giftroom.services.event_bus import EventBus
from giftroom.services.room_coordinator import RoomCoordinator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/rooms", tags=["rooms"])

# Keep proxies (X-Accel-Buffering) and browsers (Cache-Control) from
# batching small event frames.
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


@router.get("/{room_id}/events")
async def stream_room_events(
    room_id: int,
    user_id: int = Query(..., alias="userId", gt=0),
    coordinator: RoomCoordinator = Depends(get_coordinator),
    registry: ConnectionRegistry = Depends(get_connection_registry),
    bus: EventBus = Depends(get_event_bus),
    settings: Settings = Depends(get_settings),
):
    """Subscribe to room events until the client leaves or the room is deleted."""
    rid = RoomId(room_id)
    connection_id = registry.new_connection_id(UserId(user_id))
    sink = QueueSink(maxsize=settings.sse_queue_size)
    registry.register(rid, connection_id, sink)
    bus.publish_to(rid, connection_id, Connected(rid))
    try:
        await coordinator.get_room_snapshot(rid, None)
    except Exception:
        registry.unregister(rid, connection_id)
        sink.close()
        raise
    finally:
        await coordinator.close()

    async def event_generator():
        try:
            async for frame in sink.frames():
                yield frame
        except asyncio.CancelledError:
            logger.info(
                "Client disconnected from room stream",
                extra={"room_id": rid, "connection_id": connection_id},
            )
            raise
        finally:
            registry.unregister(rid, connection_id)
            sink.close()

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
