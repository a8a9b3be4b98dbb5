"""Room Rules — precondition checks run before any room mutation.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - Raise a GiftRoomError subclass on violation, return normally on success
    - check_draw_ready reports every offending participant by name, not just the first

Design Decisions:
    - Exceptions (not error dicts): RoomCoordinator aborts the unit of work on the
      first failure and the API layer maps the error kind to an HTTP status
    - Not-ready is checked before missing-letter: a ready participant always has a letter,
      so the letter check only fires on state written outside the coordinator
"""

from collections.abc import Sequence

from giftroom.core.domain_types import LetterId, RedrawPolicy, RoomId, UserId
from giftroom.core.errors import (
    ConflictError, ErrorContext, ForbiddenError, NotFoundError,
    PreconditionFailedError, ValidationError,
)
from giftroom.core.room_records import LetterRecord, ParticipantRecord, RoomRecord

MIN_DRAW_PARTICIPANTS = 2


def require_text(value: str | None, field: str) -> str:
    """Trimmed non-empty string or ValidationError."""
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required", field)
    return value.strip()


def require_owner(room: RoomRecord, user_id: UserId, action: str) -> None:
    if room.owner_id != user_id:
        raise ForbiddenError(
            f"Only the room owner can {action}",
            ErrorContext(room_id=room.id, user_id=user_id),
        )


def require_participant(
    participant: ParticipantRecord | None, room_id: RoomId, user_id: UserId,
) -> ParticipantRecord:
    if participant is None:
        raise ForbiddenError(
            "User is not a participant of this room",
            ErrorContext(room_id=room_id, user_id=user_id),
        )
    return participant


def check_letter_selectable(
    letter: LetterRecord | None, letter_id: LetterId, user_id: UserId,
) -> LetterRecord:
    """Letter must exist, belong to the caller, and not be consumed by a draw."""
    if letter is None:
        raise NotFoundError("Letter", letter_id)
    if letter.owner_id != user_id:
        raise ConflictError(
            "Letter does not belong to this user",
            ErrorContext(user_id=user_id),
        )
    if letter.in_use:
        raise ConflictError(
            "Letter has already been used in a draw",
            ErrorContext(user_id=user_id),
        )
    return letter


def check_can_toggle_ready(participant: ParticipantRecord, room_id: RoomId) -> None:
    if participant.selected_letter_id is None:
        raise PreconditionFailedError(
            "Select a letter first",
            context=ErrorContext(room_id=room_id, user_id=participant.user_id),
        )


def check_draw_ready(
    participants: Sequence[ParticipantRecord], room_id: RoomId,
) -> list[ParticipantRecord]:
    """Everyone ready, everyone lettered, at least two. Returns the draw set."""
    ctx = ErrorContext(room_id=room_id)
    not_ready = [p.name for p in participants if not p.is_ready]
    if not_ready:
        raise PreconditionFailedError(
            f"Not all participants are ready: {', '.join(not_ready)}",
            offenders=not_ready, context=ctx,
        )
    no_letter = [p.name for p in participants if p.selected_letter_id is None]
    if no_letter:
        raise PreconditionFailedError(
            f"Not all participants have selected a letter: {', '.join(no_letter)}",
            offenders=no_letter, context=ctx,
        )
    if len(participants) < MIN_DRAW_PARTICIPANTS:
        raise PreconditionFailedError(
            f"A draw needs at least {MIN_DRAW_PARTICIPANTS} participants",
            context=ctx,
        )
    return list(participants)


def check_redraw_allowed(
    has_results: bool, policy: RedrawPolicy, room_id: RoomId,
) -> None:
    if has_results and policy == RedrawPolicy.FORBID:
        raise ConflictError(
            "The draw for this room has already taken place",
            ErrorContext(room_id=room_id),
        )
