"""Room Routes — room lifecycle, letter selection, readiness and the draw.

Invariants:
    - Every route delegates to RoomCoordinator; errors surface as GiftRoomError
      and are mapped to HTTP statuses by api/error_handlers.py
    - The room secret is returned only by POST /rooms (the creator shares it)
    - draw-result exposes the caller's own assignment, never anyone else's

Design Decisions:
    - Responses are the core records' to_dict() output: the same camelCase shapes
      travel over SSE, so clients parse one format
    - Caller identity travels as userId (query for reads, body for writes)
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from giftroom.api.dependencies import get_coordinator
from giftroom.core.domain_types import LetterId, RoomId, UserId
from giftroom.schemas.room import (
    LetterSelect, RoomCreate, RoomJoin, RoomLeave, UserAction,
)
from giftroom.services.room_coordinator import RoomCoordinator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/rooms", tags=["rooms"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_room(
    body: RoomCreate, coordinator: RoomCoordinator = Depends(get_coordinator),
):
    """Create a room; the owner becomes its first participant."""
    room = await coordinator.create_room(
        body.name, UserId(body.owner_id), body.secret,
    )
    return {"room": room.to_dict(include_secret=True)}


@router.get("")
async def list_rooms(
    user_id: int = Query(..., alias="userId", gt=0),
    coordinator: RoomCoordinator = Depends(get_coordinator),
):
    """All rooms, flagged with whether the caller has joined each."""
    summaries = await coordinator.list_rooms(UserId(user_id))
    return {"rooms": [s.to_dict() for s in summaries]}


@router.post("/join")
async def join_room(
    body: RoomJoin, coordinator: RoomCoordinator = Depends(get_coordinator),
):
    room, joined = await coordinator.join_room(
        RoomId(body.room_id), body.secret, UserId(body.user_id),
    )
    return {"room": room.to_dict(), "joined": joined}


@router.post("/leave")
async def leave_room(
    body: RoomLeave, coordinator: RoomCoordinator = Depends(get_coordinator),
):
    """Leave a room. The owner leaving deletes it (roomDeleted=true)."""
    deleted = await coordinator.leave_room(
        RoomId(body.room_id), UserId(body.user_id),
    )
    return {"roomDeleted": deleted}


@router.delete("/{room_id}")
async def delete_room(
    room_id: int,
    body: UserAction,
    coordinator: RoomCoordinator = Depends(get_coordinator),
):
    await coordinator.delete_room(RoomId(room_id), UserId(body.user_id))
    return {"ok": True}


@router.get("/{room_id}")
async def get_room(
    room_id: int,
    user_id: int | None = Query(None, alias="userId", gt=0),
    coordinator: RoomCoordinator = Depends(get_coordinator),
):
    """Room snapshot; the viewer (if given and present) is listed first."""
    viewer = UserId(user_id) if user_id is not None else None
    snapshot = await coordinator.get_room_snapshot(RoomId(room_id), viewer)
    return snapshot.to_dict()


@router.post("/{room_id}/select-letter")
async def select_letter(
    room_id: int,
    body: LetterSelect,
    coordinator: RoomCoordinator = Depends(get_coordinator),
):
    await coordinator.select_letter(
        RoomId(room_id), UserId(body.user_id), LetterId(body.letter_id),
    )
    return {"ok": True}


@router.post("/{room_id}/toggle-ready")
async def toggle_ready(
    room_id: int,
    body: UserAction,
    coordinator: RoomCoordinator = Depends(get_coordinator),
):
    is_ready, snapshot = await coordinator.toggle_ready(
        RoomId(room_id), UserId(body.user_id),
    )
    return {"isReady": is_ready, **snapshot.to_dict()}


@router.post("/{room_id}/draw")
async def start_draw(
    room_id: int,
    body: UserAction,
    coordinator: RoomCoordinator = Depends(get_coordinator),
):
    """Owner-only: compute and commit the derangement for the room."""
    results = await coordinator.start_draw(RoomId(room_id), UserId(body.user_id))
    return {"results": [r.to_dict() for r in results]}


@router.get("/{room_id}/draw-result")
async def get_draw_result(
    room_id: int,
    user_id: int = Query(..., alias="userId", gt=0),
    coordinator: RoomCoordinator = Depends(get_coordinator),
):
    result = await coordinator.draw_result_for(RoomId(room_id), UserId(user_id))
    if result is None:
        return {"hasResult": False}
    return {"hasResult": True, "result": result.to_giver_dict()}
