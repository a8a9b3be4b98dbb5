"""Dependencies — FastAPI providers for per-request and per-app services.

Invariants:
    - ConnectionRegistry, EventBus and RoomLocks live on app.state (one per app instance)
    - RoomCoordinator is built per request around that request's AsyncSession

Design Decisions:
    - app.state over module-level singletons: a second app instance (tests, workers)
      gets its own registry instead of sharing one by import
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from giftroom.config import Settings, get_settings
from giftroom.infrastructure.database import get_db
from giftroom.services.connection_registry import ConnectionRegistry
from giftroom.services.event_bus import EventBus
from giftroom.services.room_coordinator import RoomCoordinator
from giftroom.services.room_locks import RoomLocks


def get_connection_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.connections


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.event_bus


def get_room_locks(request: Request) -> RoomLocks:
    return request.app.state.room_locks


async def get_coordinator(
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
    locks: RoomLocks = Depends(get_room_locks),
    settings: Settings = Depends(get_settings),
) -> RoomCoordinator:
    return RoomCoordinator(
        db, bus, locks,
        redraw_policy=settings.redraw_policy,
        max_draw_attempts=settings.draw_max_attempts,
    )
