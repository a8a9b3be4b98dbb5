"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations share one unit of work: none of them commits

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO; RoomCoordinator orchestrates the awaits
      around the pure rules in room_rules and draw_engine
    - UserDirectory and LetterStore model external collaborators: the core reads them by id
      and only ever flips the letter in-use flag
"""

from collections.abc import Sequence
from typing import Protocol

from giftroom.core.domain_types import LetterId, RoomId, UserId
from giftroom.core.room_records import (
    DrawAssignment, LetterRecord, ParticipantRecord, RoomRecord,
)


class UserDirectory(Protocol):
    """Identity lookup by id."""
    async def exists(self, user_id: UserId) -> bool: ...


class LetterStore(Protocol):
    """Opaque letter records with an in-use flag."""
    async def get(self, letter_id: LetterId) -> LetterRecord | None: ...
    async def available_for(self, user_id: UserId) -> list[LetterRecord]: ...
    async def mark_in_use(self, letter_ids: Sequence[LetterId]) -> None: ...


class RoomStore(Protocol):
    """Rooms, participants and draw results."""
    async def create_room(
        self, name: str, owner_id: UserId, secret: str,
    ) -> RoomRecord: ...
    async def secret_taken(self, secret: str) -> bool: ...
    async def get_room(
        self, room_id: RoomId, for_update: bool = False,
    ) -> RoomRecord | None: ...
    async def list_rooms(self) -> list[RoomRecord]: ...
    async def participant_counts(self) -> dict[RoomId, int]: ...
    async def joined_room_ids(self, user_id: UserId) -> set[RoomId]: ...
    async def delete_room(self, room_id: RoomId) -> None: ...
    async def get_participant(
        self, room_id: RoomId, user_id: UserId,
    ) -> ParticipantRecord | None: ...
    async def list_participants(self, room_id: RoomId) -> list[ParticipantRecord]: ...
    async def add_participant(self, room_id: RoomId, user_id: UserId) -> None: ...
    async def remove_participant(self, room_id: RoomId, user_id: UserId) -> None: ...
    async def set_selected_letter(
        self, room_id: RoomId, user_id: UserId, letter_id: LetterId,
    ) -> None: ...
    async def set_ready(
        self, room_id: RoomId, user_id: UserId, is_ready: bool,
    ) -> None: ...
    async def has_results(self, room_id: RoomId) -> bool: ...
    async def clear_results(self, room_id: RoomId) -> None: ...
    async def save_results(
        self, room_id: RoomId,
        rows: Sequence[tuple[UserId, UserId, LetterId]],
    ) -> None: ...
    async def list_results(self, room_id: RoomId) -> list[DrawAssignment]: ...
    async def result_for_giver(
        self, room_id: RoomId, giver_id: UserId,
    ) -> DrawAssignment | None: ...
    async def results_for_giver(self, giver_id: UserId) -> list[DrawAssignment]: ...
