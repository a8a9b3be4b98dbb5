"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - RoomId, UserId, LetterId wrap ints — never pass a bare int where an id is meant
    - All event kinds encoded as an Enum — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (SSE payloads are JSON)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

RoomId = NewType("RoomId", int)
UserId = NewType("UserId", int)
LetterId = NewType("LetterId", int)
ConnectionId = NewType("ConnectionId", str)


# ─── Enums ───────────────────────────────────────────────────────

class RoomEventType(str, Enum):
    """Every event a room subscriber can receive. Closed set."""
    CONNECTED = "connected"
    PARTICIPANT_JOINED = "participant_joined"
    PARTICIPANT_LEFT = "participant_left"
    LETTER_SELECTED = "letter_selected"
    READY_STATUS_CHANGED = "ready_status_changed"
    DRAW_COMPLETED = "draw_completed"
    ROOM_DELETED = "room_deleted"


class RedrawPolicy(str, Enum):
    """What startDraw does on a room that already has results."""
    FORBID = "forbid"
    REPLACE = "replace"
