"""Room Coordinator — every room operation: validate, one transaction, snapshot, publish.

Invariants:
    - All precondition checks run before the first write
    - Each mutation is one unit of work: commit everything or roll back everything
    - Events are published only after a successful commit, never on failure
    - Mutations on one room are serialized by RoomLocks + a row lock on the room
    - startDraw re-reads the participant set before commit and aborts with
      ConflictError if it changed underneath the draw
    - A wrong join secret is reported exactly like a missing room (NotFoundError)

Design Decisions:
    - Impureim sandwich: store reads -> pure rules/draw engine -> store writes -> publish
    - Snapshot for the broadcast is read inside the transaction, so the event reflects
      exactly what was committed
    - Stores default to the SQL implementations on the same session; tests may inject fakes
    - Non-participant leave is a no-op returning roomDeleted=False (nothing to remove)
"""

import logging
import random
import secrets
import string
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from giftroom.core.domain_types import LetterId, RedrawPolicy, RoomId, UserId
from giftroom.core.draw_engine import MAX_DRAW_ATTEMPTS, draw_receivers
from giftroom.core.errors import (
    ConflictError, DrawImpossibleError, ErrorContext, NotFoundError,
    PreconditionFailedError, StorageError, ValidationError,
)
from giftroom.core.repository_protocols import LetterStore, RoomStore, UserDirectory
from giftroom.core.room_events import (
    DrawCompleted, LetterSelected, ParticipantJoined, ParticipantLeft,
    ReadyStatusChanged, RoomDeleted,
)
from giftroom.core.room_records import (
    DrawAssignment, LetterRecord, ParticipantRecord, RoomRecord, RoomSummary,
)
from giftroom.core.room_rules import (
    check_can_toggle_ready, check_draw_ready, check_letter_selectable,
    check_redraw_allowed, require_owner, require_participant, require_text,
)
from giftroom.core.room_snapshot import RoomSnapshot, build_snapshot
from giftroom.infrastructure.letter_store import SqlLetterStore
from giftroom.infrastructure.user_directory import SqlUserDirectory
from giftroom.services.event_bus import EventBus
from giftroom.services.room_locks import RoomLocks
from giftroom.services.room_store import SqlRoomStore

logger = logging.getLogger(__name__)

MAX_SECRET_ATTEMPTS = 10
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def _secret_suffix() -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))


def _participant_fingerprint(
    participants: list[ParticipantRecord],
) -> set[tuple[UserId, bool, LetterId | None]]:
    return {(p.user_id, p.is_ready, p.selected_letter_id) for p in participants}


class RoomCoordinator:
    """Orchestrates room lifecycle, readiness and the draw for one request."""

    def __init__(
        self,
        db: AsyncSession,
        bus: EventBus,
        locks: RoomLocks,
        *,
        rooms: RoomStore | None = None,
        letters: LetterStore | None = None,
        users: UserDirectory | None = None,
        redraw_policy: RedrawPolicy = RedrawPolicy.FORBID,
        max_draw_attempts: int = MAX_DRAW_ATTEMPTS,
        rng: random.Random | None = None,
    ):
        self.db = db
        self.bus = bus
        self.locks = locks
        self.rooms: RoomStore = rooms or SqlRoomStore(db)
        self.letters: LetterStore = letters or SqlLetterStore(db)
        self.users: UserDirectory = users or SqlUserDirectory(db)
        self.redraw_policy = redraw_policy
        self.max_draw_attempts = max_draw_attempts
        self.rng = rng

    @asynccontextmanager
    async def _unit_of_work(self, operation: str) -> AsyncIterator[None]:
        """Commit on success; roll back and re-raise on any failure."""
        try:
            yield
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Room {operation} rolled back: {e}")
            raise StorageError("Transaction rolled back", operation) from e
        except Exception:
            await self.db.rollback()
            raise

    async def close(self) -> None:
        """Release the session's connection (long-lived SSE requests)."""
        await self.db.close()

    # -- Reads -----------------------------------------------------------------

    async def _require_room(
        self, room_id: RoomId, for_update: bool = False,
    ) -> RoomRecord:
        room = await self.rooms.get_room(room_id, for_update=for_update)
        if room is None:
            raise NotFoundError("Room", room_id, ErrorContext(room_id=room_id))
        return room

    async def _snapshot(
        self, room: RoomRecord, viewer_id: UserId | None,
    ) -> RoomSnapshot:
        participants = await self.rooms.list_participants(room.id)
        return build_snapshot(room, participants, viewer_id)

    async def get_room_snapshot(
        self, room_id: RoomId, viewer_id: UserId | None,
    ) -> RoomSnapshot:
        room = await self._require_room(room_id)
        return await self._snapshot(room, viewer_id)

    async def list_rooms(self, user_id: UserId) -> list[RoomSummary]:
        rooms = await self.rooms.list_rooms()
        counts = await self.rooms.participant_counts()
        joined = await self.rooms.joined_room_ids(user_id)
        return [
            RoomSummary(
                room=room,
                participant_count=counts.get(room.id, 0),
                is_joined=room.id in joined,
            )
            for room in rooms
        ]

    async def available_letters(self, user_id: UserId) -> list[LetterRecord]:
        return await self.letters.available_for(user_id)

    async def draw_result_for(
        self, room_id: RoomId, user_id: UserId,
    ) -> DrawAssignment | None:
        return await self.rooms.result_for_giver(room_id, user_id)

    async def santa_letters(self, user_id: UserId) -> list[DrawAssignment]:
        return await self.rooms.results_for_giver(user_id)

    # -- Lifecycle -------------------------------------------------------------

    async def create_room(
        self, name: str | None, owner_id: UserId | None, secret: str | None,
    ) -> RoomRecord:
        name = require_text(name, "name")
        secret = require_text(secret, "secret")
        if owner_id is None:
            raise ValidationError("ownerId is required", "ownerId")

        async with self._unit_of_work("create_room"):
            if not await self.users.exists(owner_id):
                raise NotFoundError("User", owner_id)
            final_secret = secret
            for _ in range(MAX_SECRET_ATTEMPTS):
                if not await self.rooms.secret_taken(final_secret):
                    break
                final_secret = f"{secret}_{_secret_suffix()}"
            else:
                raise ConflictError("Could not allocate a unique room secret")
            room = await self.rooms.create_room(name, owner_id, final_secret)

        logger.info(
            "Room created", extra={"room_id": room.id, "user_id": owner_id},
        )
        return room

    async def join_room(
        self, room_id: RoomId, secret: str | None, user_id: UserId,
    ) -> tuple[RoomRecord, bool]:
        """Returns (room, joined). joined=False on a repeat join (no event)."""
        secret = require_text(secret, "secret")
        async with self.locks.hold(room_id):
            async with self._unit_of_work("join_room"):
                room = await self.rooms.get_room(room_id, for_update=True)
                if room is None or room.secret != secret:
                    raise NotFoundError("Room", room_id)
                if await self.rooms.get_participant(room_id, user_id):
                    return room, False
                if not await self.users.exists(user_id):
                    raise NotFoundError("User", user_id)
                await self.rooms.add_participant(room_id, user_id)
                snapshot = await self._snapshot(room, None)

            logger.info(
                "Participant joined", extra={"room_id": room_id, "user_id": user_id},
            )
            self.bus.publish(room_id, ParticipantJoined(user_id, snapshot))
        return room, True

    async def leave_room(self, room_id: RoomId, user_id: UserId) -> bool:
        """Returns True when the owner left and the room was deleted."""
        async with self.locks.hold(room_id):
            async with self._unit_of_work("leave_room"):
                room = await self._require_room(room_id, for_update=True)
                if room.owner_id == user_id:
                    await self.rooms.delete_room(room_id)
                else:
                    participant = await self.rooms.get_participant(room_id, user_id)
                    if participant is None:
                        return False
                    await self.rooms.remove_participant(room_id, user_id)
                    snapshot = await self._snapshot(room, None)

            if room.owner_id == user_id:
                self._announce_deleted(room_id, user_id)
                return True
            logger.info(
                "Participant left", extra={"room_id": room_id, "user_id": user_id},
            )
            self.bus.publish(room_id, ParticipantLeft(user_id, snapshot))
        return False

    async def delete_room(self, room_id: RoomId, user_id: UserId) -> None:
        async with self.locks.hold(room_id):
            async with self._unit_of_work("delete_room"):
                room = await self._require_room(room_id, for_update=True)
                require_owner(room, user_id, "delete the room")
                await self.rooms.delete_room(room_id)
            self._announce_deleted(room_id, user_id)

    def _announce_deleted(self, room_id: RoomId, user_id: UserId) -> None:
        logger.info("Room deleted", extra={"room_id": room_id, "user_id": user_id})
        self.bus.close_room(room_id, RoomDeleted(room_id))

    # -- Letters and readiness -------------------------------------------------

    async def select_letter(
        self, room_id: RoomId, user_id: UserId, letter_id: LetterId,
    ) -> RoomSnapshot:
        async with self.locks.hold(room_id):
            async with self._unit_of_work("select_letter"):
                room = await self._require_room(room_id, for_update=True)
                require_participant(
                    await self.rooms.get_participant(room_id, user_id),
                    room_id, user_id,
                )
                check_letter_selectable(
                    await self.letters.get(letter_id), letter_id, user_id,
                )
                await self.rooms.set_selected_letter(room_id, user_id, letter_id)
                participants = await self.rooms.list_participants(room_id)

            self.bus.publish(
                room_id,
                LetterSelected(user_id, build_snapshot(room, participants)),
            )
        return build_snapshot(room, participants, user_id)

    async def toggle_ready(
        self, room_id: RoomId, user_id: UserId,
    ) -> tuple[bool, RoomSnapshot]:
        async with self.locks.hold(room_id):
            async with self._unit_of_work("toggle_ready"):
                room = await self._require_room(room_id, for_update=True)
                participant = require_participant(
                    await self.rooms.get_participant(room_id, user_id),
                    room_id, user_id,
                )
                check_can_toggle_ready(participant, room_id)
                is_ready = not participant.is_ready
                await self.rooms.set_ready(room_id, user_id, is_ready)
                participants = await self.rooms.list_participants(room_id)

            self.bus.publish(
                room_id,
                ReadyStatusChanged(
                    user_id, is_ready, build_snapshot(room, participants),
                ),
            )
        return is_ready, build_snapshot(room, participants, user_id)

    # -- Draw ------------------------------------------------------------------

    async def start_draw(
        self, room_id: RoomId, user_id: UserId,
    ) -> list[DrawAssignment]:
        async with self.locks.hold(room_id):
            async with self._unit_of_work("start_draw"):
                room = await self._require_room(room_id, for_update=True)
                require_owner(room, user_id, "start the draw")
                had_results = await self.rooms.has_results(room_id)
                check_redraw_allowed(had_results, self.redraw_policy, room_id)

                participants = await self.rooms.list_participants(room_id)
                eligible = check_draw_ready(participants, room_id)
                await self._check_letters_unused(eligible, room_id)

                givers = [p.user_id for p in eligible]
                try:
                    receivers = draw_receivers(
                        givers, rng=self.rng, max_attempts=self.max_draw_attempts,
                    )
                except DrawImpossibleError as e:
                    e.context.room_id = room_id
                    logger.error(
                        e.message,
                        extra={"room_id": room_id, "attempt": e.attempts},
                    )
                    raise
                letter_of = {p.user_id: p.selected_letter_id for p in eligible}
                rows = [
                    (giver, receiver, letter_of[receiver])
                    for giver, receiver in zip(givers, receivers)
                ]

                if had_results:
                    await self.rooms.clear_results(room_id)
                await self.rooms.save_results(room_id, rows)
                await self.letters.mark_in_use([letter for _, _, letter in rows])

                current = await self.rooms.list_participants(room_id)
                if _participant_fingerprint(current) != _participant_fingerprint(eligible):
                    raise ConflictError(
                        "Room changed during the draw, try again",
                        ErrorContext(room_id=room_id),
                    )
                results = await self.rooms.list_results(room_id)

            logger.info(
                f"Draw completed with {len(results)} pairs",
                extra={"room_id": room_id, "user_id": user_id},
            )
            self.bus.publish(room_id, DrawCompleted(room_id, tuple(results)))
        return results

    async def _check_letters_unused(
        self, participants: list[ParticipantRecord], room_id: RoomId,
    ) -> None:
        used = []
        for p in participants:
            letter = await self.letters.get(p.selected_letter_id)
            if letter is None or letter.in_use:
                used.append(p.name)
        if used:
            raise PreconditionFailedError(
                f"Selected letters are no longer available: {', '.join(used)}",
                offenders=used, context=ErrorContext(room_id=room_id),
            )

