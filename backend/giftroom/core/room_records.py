"""Room Records — plain immutable rows handed from the store boundary to the core.

Invariants:
    - Records are frozen: the core never mutates what the store returned
    - RoomRecord.secret is only serialized by to_dict(include_secret=True)
    - ParticipantRecord.is_ready implies selected_letter_id is not None (enforced on write)

Design Decisions:
    - Dataclasses over ORM objects: core stays free of SQLAlchemy and sessions
    - to_dict() emits camelCase keys, the shape clients and SSE events share
"""

from dataclasses import dataclass
from datetime import datetime

from giftroom.core.domain_types import LetterId, RoomId, UserId


@dataclass(frozen=True)
class RoomRecord:
    id: RoomId
    name: str
    owner_id: UserId
    secret: str
    owner_name: str | None = None

    def to_dict(self, include_secret: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "ownerId": self.owner_id,
            "ownerName": self.owner_name,
        }
        if include_secret:
            data["secret"] = self.secret
        return data


@dataclass(frozen=True)
class ParticipantRecord:
    user_id: UserId
    name: str
    joined_at: datetime
    is_ready: bool = False
    selected_letter_id: LetterId | None = None
    selected_letter_heading: str | None = None
    username: str | None = None


@dataclass(frozen=True)
class LetterRecord:
    """Letter as seen through the LetterStore collaborator."""
    id: LetterId
    owner_id: UserId
    heading: str
    message: str
    in_use: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "heading": self.heading,
            "message": self.message,
            "inUse": self.in_use,
        }


@dataclass(frozen=True)
class DrawAssignment:
    """One giver -> receiver row of a committed draw, joined with display names."""
    giver_id: UserId
    receiver_id: UserId
    letter_id: LetterId
    drawn_at: datetime
    giver_name: str | None = None
    receiver_name: str | None = None
    letter_heading: str | None = None
    letter_message: str | None = None
    room_id: RoomId | None = None
    room_name: str | None = None

    def to_dict(self) -> dict:
        return {
            "giverId": self.giver_id,
            "giverName": self.giver_name,
            "receiverId": self.receiver_id,
            "receiverName": self.receiver_name,
            "letterId": self.letter_id,
            "letterHeading": self.letter_heading,
            "drawnAt": self.drawn_at.isoformat(),
        }

    def to_giver_dict(self, deleted_room_label: str = "Deleted room") -> dict:
        """Giver-only view: includes the receiver's letter text."""
        return {
            "roomId": self.room_id,
            "roomName": self.room_name or deleted_room_label,
            "receiverId": self.receiver_id,
            "receiverName": self.receiver_name,
            "letterId": self.letter_id,
            "letterHeading": self.letter_heading,
            "letterMessage": self.letter_message,
            "drawnAt": self.drawn_at.isoformat(),
        }


@dataclass(frozen=True)
class RoomSummary:
    """Room list entry as seen by one user."""
    room: RoomRecord
    participant_count: int
    is_joined: bool

    def to_dict(self) -> dict:
        return {
            **self.room.to_dict(),
            "participantCount": self.participant_count,
            "isJoined": self.is_joined,
        }
