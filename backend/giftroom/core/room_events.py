"""Room Events — closed tagged union of everything a room subscriber can receive.

Invariants:
    - RoomEvent is a closed Union: adding a variant without a to_payload branch fails
      type-checking at assert_never
    - Every payload carries "type" (RoomEventType value) and "timestamp"
    - Snapshot-bearing events embed the refreshed room + participants + counts;
      draw_completed carries result rows; room_deleted carries only the room id
    - sse_frame output is exactly "data: <json>\\n\\n"

Design Decisions:
    - Frozen dataclass per variant over a free-form dict: consumers match on class
    - Pure match-case dispatch: no inheritance, no polymorphism
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import assert_never

from giftroom.core.domain_types import RoomEventType, RoomId, UserId
from giftroom.core.room_records import DrawAssignment
from giftroom.core.room_snapshot import RoomSnapshot


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Connected:
    room_id: RoomId
    message: str = "Connected to room events"
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class ParticipantJoined:
    user_id: UserId
    snapshot: RoomSnapshot
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class ParticipantLeft:
    user_id: UserId
    snapshot: RoomSnapshot
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class LetterSelected:
    user_id: UserId
    snapshot: RoomSnapshot
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class ReadyStatusChanged:
    user_id: UserId
    is_ready: bool
    snapshot: RoomSnapshot
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class DrawCompleted:
    room_id: RoomId
    results: tuple[DrawAssignment, ...]
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class RoomDeleted:
    room_id: RoomId
    message: str = "Room deleted by its owner"
    timestamp: datetime = field(default_factory=_now)


RoomEvent = (
    Connected
    | ParticipantJoined
    | ParticipantLeft
    | LetterSelected
    | ReadyStatusChanged
    | DrawCompleted
    | RoomDeleted
)


def event_type(event: RoomEvent) -> RoomEventType:
    """Tag for an event variant."""
    match event:
        case Connected():
            return RoomEventType.CONNECTED
        case ParticipantJoined():
            return RoomEventType.PARTICIPANT_JOINED
        case ParticipantLeft():
            return RoomEventType.PARTICIPANT_LEFT
        case LetterSelected():
            return RoomEventType.LETTER_SELECTED
        case ReadyStatusChanged():
            return RoomEventType.READY_STATUS_CHANGED
        case DrawCompleted():
            return RoomEventType.DRAW_COMPLETED
        case RoomDeleted():
            return RoomEventType.ROOM_DELETED
        case _:
            assert_never(event)


def to_payload(event: RoomEvent) -> dict:
    """Serialize an event to its JSON-ready wire shape."""
    payload: dict = {
        "type": event_type(event).value,
        "timestamp": event.timestamp.isoformat(),
    }
    match event:
        case Connected(room_id=room_id, message=message):
            payload.update(roomId=room_id, message=message)
        case ParticipantJoined(user_id=uid, snapshot=snap) | \
                ParticipantLeft(user_id=uid, snapshot=snap) | \
                LetterSelected(user_id=uid, snapshot=snap):
            payload.update(userId=uid, **snap.to_dict())
        case ReadyStatusChanged(user_id=uid, is_ready=ready, snapshot=snap):
            payload.update(userId=uid, isReady=ready, **snap.to_dict())
        case DrawCompleted(room_id=room_id, results=results):
            payload.update(
                roomId=room_id, results=[r.to_dict() for r in results],
            )
        case RoomDeleted(room_id=room_id, message=message):
            payload.update(roomId=room_id, message=message)
        case _:
            assert_never(event)
    return payload


def sse_frame(payload: dict) -> str:
    """Format payload as one SSE data frame."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"
