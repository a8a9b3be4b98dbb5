"""Room Store — SQLAlchemy implementation of the RoomStore protocol.

Invariants:
    - Never commits or rolls back: RoomCoordinator owns the unit of work
    - Returns frozen records (core/room_records.py), never ORM instances
    - get_room(for_update=True) takes a row lock on PostgreSQL (SELECT ... FOR UPDATE);
      SQLite ignores the clause and relies on its single-writer lock
    - delete_room removes participants explicitly before the room (no reliance on
      the dialect enforcing ON DELETE CASCADE)

Design Decisions:
    - Core DML statements (update/delete) over load-modify-flush: one round trip each,
      and no stale identity-map objects survive between coordinator steps
"""

import logging
from collections.abc import Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from giftroom.core.domain_types import LetterId, RoomId, UserId
from giftroom.core.errors import StorageError
from giftroom.core.room_records import (
    DrawAssignment, ParticipantRecord, RoomRecord,
)
from giftroom.models.draw_result import DrawResult
from giftroom.models.letter import Letter
from giftroom.models.participant import Participant
from giftroom.models.room import Room
from giftroom.models.user import User

logger = logging.getLogger(__name__)

_Giver = aliased(User, name="giver")
_Receiver = aliased(User, name="receiver")


def _room_record(room: Room, owner_name: str | None) -> RoomRecord:
    return RoomRecord(
        id=RoomId(room.id),
        name=room.name,
        owner_id=UserId(room.owner_id),
        secret=room.secret,
        owner_name=owner_name,
    )


def _assignment(row) -> DrawAssignment:
    result, giver_name, receiver_name, heading, message, room_name = row
    return DrawAssignment(
        giver_id=UserId(result.giver_id),
        receiver_id=UserId(result.receiver_id),
        letter_id=LetterId(result.letter_id),
        drawn_at=result.drawn_at,
        giver_name=giver_name,
        receiver_name=receiver_name,
        letter_heading=heading,
        letter_message=message,
        room_id=RoomId(result.room_id),
        room_name=room_name,
    )


class SqlRoomStore:
    """Rooms, participants and draw results behind one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # -- Rooms -----------------------------------------------------------------

    async def create_room(
        self, name: str, owner_id: UserId, secret: str,
    ) -> RoomRecord:
        room = Room(name=name, owner_id=owner_id, secret=secret)
        self.db.add(room)
        await self.db.flush()
        self.db.add(Participant(room_id=room.id, user_id=owner_id))
        await self.db.flush()
        record = await self.get_room(RoomId(room.id))
        if record is None:
            raise StorageError("Room row missing after insert", "create_room")
        return record

    async def secret_taken(self, secret: str) -> bool:
        result = await self.db.execute(
            select(Room.id).where(Room.secret == secret),
        )
        return result.first() is not None

    async def get_room(
        self, room_id: RoomId, for_update: bool = False,
    ) -> RoomRecord | None:
        query = (
            select(Room, User.name)
            .outerjoin(User, User.id == Room.owner_id)
            .where(Room.id == room_id)
        )
        if for_update:
            query = query.with_for_update(of=Room)
        row = (await self.db.execute(query)).first()
        if row is None:
            return None
        room, owner_name = row
        return _room_record(room, owner_name)

    async def list_rooms(self) -> list[RoomRecord]:
        result = await self.db.execute(
            select(Room, User.name)
            .outerjoin(User, User.id == Room.owner_id)
            .order_by(Room.id.desc()),
        )
        return [_room_record(room, name) for room, name in result.all()]

    async def participant_counts(self) -> dict[RoomId, int]:
        result = await self.db.execute(
            select(Participant.room_id, func.count())
            .group_by(Participant.room_id),
        )
        return {RoomId(room_id): count for room_id, count in result.all()}

    async def joined_room_ids(self, user_id: UserId) -> set[RoomId]:
        result = await self.db.execute(
            select(Participant.room_id).where(Participant.user_id == user_id),
        )
        return {RoomId(room_id) for room_id in result.scalars().all()}

    async def delete_room(self, room_id: RoomId) -> None:
        await self.db.execute(
            delete(Participant).where(Participant.room_id == room_id),
        )
        await self.db.execute(delete(Room).where(Room.id == room_id))

    # -- Participants ----------------------------------------------------------

    def _participant_query(self, room_id: RoomId):
        return (
            select(Participant, User.name, User.username, Letter.heading)
            .join(User, User.id == Participant.user_id)
            .outerjoin(Letter, Letter.id == Participant.selected_letter_id)
            .where(Participant.room_id == room_id)
            .execution_options(populate_existing=True)
        )

    @staticmethod
    def _participant_record(row) -> ParticipantRecord:
        participant, name, username, heading = row
        return ParticipantRecord(
            user_id=UserId(participant.user_id),
            name=name,
            username=username,
            joined_at=participant.joined_at,
            is_ready=participant.is_ready,
            selected_letter_id=(
                LetterId(participant.selected_letter_id)
                if participant.selected_letter_id is not None else None
            ),
            selected_letter_heading=heading,
        )

    async def get_participant(
        self, room_id: RoomId, user_id: UserId,
    ) -> ParticipantRecord | None:
        row = (await self.db.execute(
            self._participant_query(room_id)
            .where(Participant.user_id == user_id),
        )).first()
        return self._participant_record(row) if row else None

    async def list_participants(self, room_id: RoomId) -> list[ParticipantRecord]:
        result = await self.db.execute(
            self._participant_query(room_id)
            .order_by(Participant.joined_at, Participant.user_id),
        )
        return [self._participant_record(row) for row in result.all()]

    async def add_participant(self, room_id: RoomId, user_id: UserId) -> None:
        self.db.add(Participant(room_id=room_id, user_id=user_id))
        await self.db.flush()

    async def remove_participant(self, room_id: RoomId, user_id: UserId) -> None:
        await self.db.execute(
            delete(Participant)
            .where(Participant.room_id == room_id)
            .where(Participant.user_id == user_id),
        )

    async def set_selected_letter(
        self, room_id: RoomId, user_id: UserId, letter_id: LetterId,
    ) -> None:
        await self.db.execute(
            update(Participant)
            .where(Participant.room_id == room_id)
            .where(Participant.user_id == user_id)
            .values(selected_letter_id=letter_id),
        )

    async def set_ready(
        self, room_id: RoomId, user_id: UserId, is_ready: bool,
    ) -> None:
        await self.db.execute(
            update(Participant)
            .where(Participant.room_id == room_id)
            .where(Participant.user_id == user_id)
            .values(is_ready=is_ready),
        )

    # -- Draw results ----------------------------------------------------------

    async def has_results(self, room_id: RoomId) -> bool:
        result = await self.db.execute(
            select(DrawResult.id).where(DrawResult.room_id == room_id).limit(1),
        )
        return result.first() is not None

    async def clear_results(self, room_id: RoomId) -> None:
        await self.db.execute(
            delete(DrawResult).where(DrawResult.room_id == room_id),
        )

    async def save_results(
        self, room_id: RoomId,
        rows: Sequence[tuple[UserId, UserId, LetterId]],
    ) -> None:
        self.db.add_all([
            DrawResult(
                room_id=room_id, giver_id=giver,
                receiver_id=receiver, letter_id=letter,
            )
            for giver, receiver, letter in rows
        ])
        await self.db.flush()

    def _results_query(self):
        return (
            select(
                DrawResult, _Giver.name, _Receiver.name,
                Letter.heading, Letter.message, Room.name,
            )
            .join(_Giver, _Giver.id == DrawResult.giver_id)
            .join(_Receiver, _Receiver.id == DrawResult.receiver_id)
            .join(Letter, Letter.id == DrawResult.letter_id)
            .outerjoin(Room, Room.id == DrawResult.room_id)
        )

    async def list_results(self, room_id: RoomId) -> list[DrawAssignment]:
        result = await self.db.execute(
            self._results_query()
            .where(DrawResult.room_id == room_id)
            .order_by(DrawResult.id),
        )
        return [_assignment(row) for row in result.all()]

    async def result_for_giver(
        self, room_id: RoomId, giver_id: UserId,
    ) -> DrawAssignment | None:
        row = (await self.db.execute(
            self._results_query()
            .where(DrawResult.room_id == room_id)
            .where(DrawResult.giver_id == giver_id),
        )).first()
        return _assignment(row) if row else None

    async def results_for_giver(self, giver_id: UserId) -> list[DrawAssignment]:
        result = await self.db.execute(
            self._results_query()
            .where(DrawResult.giver_id == giver_id)
            .order_by(DrawResult.drawn_at.desc(), DrawResult.id.desc()),
        )
        return [_assignment(row) for row in result.all()]
