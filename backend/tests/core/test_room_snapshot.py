"""Room Snapshot — verifies participant ordering, flags and counts.

Tests:
    - Viewer first when present, owner first otherwise
    - Remaining participants ordered by join time
    - ready_count / total_participants
    - to_dict uses camelCase and never exposes the room secret
"""

from datetime import datetime, timedelta, timezone

from giftroom.core.domain_types import LetterId, RoomId, UserId
from giftroom.core.room_records import ParticipantRecord, RoomRecord
from giftroom.core.room_snapshot import build_snapshot

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)
ROOM = RoomRecord(
    id=RoomId(1), name="Office", owner_id=UserId(1), secret="s3cret",
    owner_name="Ann",
)


def _p(uid, name, offset, ready=False):
    return ParticipantRecord(
        user_id=UserId(uid), name=name, joined_at=T0 + timedelta(seconds=offset),
        is_ready=ready, selected_letter_id=LetterId(uid) if ready else None,
    )


PARTICIPANTS = [_p(3, "Cy", 30), _p(1, "Ann", 0, ready=True), _p(2, "Bo", 10)]


def test_viewer_listed_first():
    snap = build_snapshot(ROOM, PARTICIPANTS, viewer_id=UserId(3))
    assert [p.record.user_id for p in snap.participants] == [3, 1, 2]
    assert snap.participants[0].is_viewer
    assert not any(p.is_viewer for p in snap.participants[1:])


def test_owner_first_without_viewer():
    snap = build_snapshot(ROOM, [_p(2, "Bo", 0), _p(1, "Ann", 5)])
    assert [p.record.user_id for p in snap.participants] == [1, 2]
    assert snap.participants[0].is_owner


def test_absent_viewer_falls_back_to_owner_first():
    snap = build_snapshot(ROOM, PARTICIPANTS, viewer_id=UserId(99))
    assert [p.record.user_id for p in snap.participants] == [1, 2, 3]


def test_counts():
    snap = build_snapshot(ROOM, PARTICIPANTS)
    assert snap.ready_count == 1
    assert snap.total_participants == 3


def test_to_dict_shape():
    data = build_snapshot(ROOM, PARTICIPANTS, viewer_id=UserId(1)).to_dict()
    assert data["room"] == {
        "id": 1, "name": "Office", "ownerId": 1, "ownerName": "Ann",
    }
    assert data["readyCount"] == 1
    assert data["totalParticipants"] == 3
    first = data["participants"][0]
    assert first["userId"] == 1
    assert first["isOwner"] is True
    assert first["isViewer"] is True
    assert first["selectedLetterId"] == 1
    assert "secret" not in data["room"]
