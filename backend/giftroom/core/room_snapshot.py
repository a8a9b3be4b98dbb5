"""Room Snapshot — ordered, viewer-annotated participant list with ready counts.

Invariants:
    - Viewer first when the viewer is a participant, otherwise owner first
    - Remaining participants ordered by join time, then user id (stable under equal timestamps)
    - Exactly one participant has is_owner=True when the owner is present
    - ready_count <= total_participants

Design Decisions:
    - Snapshot recomputed from store rows after every commit (never patched in place)
    - Broadcast snapshots use viewer_id=None: no subscriber is marked as the viewer,
      clients derive "is this me" from their own user id
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from giftroom.core.domain_types import UserId
from giftroom.core.room_records import ParticipantRecord, RoomRecord


@dataclass(frozen=True)
class ParticipantView:
    record: ParticipantRecord
    is_viewer: bool
    is_owner: bool

    def to_dict(self) -> dict:
        r = self.record
        return {
            "userId": r.user_id,
            "name": r.name,
            "username": r.username,
            "isReady": r.is_ready,
            "selectedLetterId": r.selected_letter_id,
            "selectedLetterHeading": r.selected_letter_heading,
            "joinedAt": r.joined_at.isoformat(),
            "isViewer": self.is_viewer,
            "isOwner": self.is_owner,
        }


@dataclass(frozen=True)
class RoomSnapshot:
    room: RoomRecord
    participants: tuple[ParticipantView, ...]
    taken_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    @property
    def ready_count(self) -> int:
        return sum(1 for p in self.participants if p.record.is_ready)

    @property
    def total_participants(self) -> int:
        return len(self.participants)

    def to_dict(self) -> dict:
        return {
            "room": self.room.to_dict(),
            "participants": [p.to_dict() for p in self.participants],
            "readyCount": self.ready_count,
            "totalParticipants": self.total_participants,
            "lastUpdated": self.taken_at.isoformat(),
        }


def _sort_key(
    p: ParticipantRecord, room: RoomRecord, viewer_id: UserId | None,
    viewer_present: bool,
) -> tuple:
    if viewer_present:
        first = p.user_id == viewer_id
    else:
        first = p.user_id == room.owner_id
    return (0 if first else 1, p.joined_at, p.user_id)


def build_snapshot(
    room: RoomRecord,
    participants: list[ParticipantRecord],
    viewer_id: UserId | None = None,
) -> RoomSnapshot:
    """Order participants and annotate viewer/owner flags."""
    viewer_present = viewer_id is not None and any(
        p.user_id == viewer_id for p in participants
    )
    ordered = sorted(
        participants,
        key=lambda p: _sort_key(p, room, viewer_id, viewer_present),
    )
    return RoomSnapshot(
        room=room,
        participants=tuple(
            ParticipantView(
                record=p,
                is_viewer=viewer_id is not None and p.user_id == viewer_id,
                is_owner=p.user_id == room.owner_id,
            )
            for p in ordered
        ),
    )
