"""User Routes — per-user read views: selectable letters and received-letter history.

Invariants:
    - Read-only: no route here mutates state or publishes events
    - Letters listed are only those still selectable (not consumed by a draw)
"""

from fastapi import APIRouter, Depends

from giftroom.api.dependencies import get_coordinator
from giftroom.core.domain_types import UserId
from giftroom.services.room_coordinator import RoomCoordinator

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/{user_id}/letters")
async def list_available_letters(
    user_id: int, coordinator: RoomCoordinator = Depends(get_coordinator),
):
    letters = await coordinator.available_letters(UserId(user_id))
    return {"letters": [letter.to_dict() for letter in letters]}


@router.get("/{user_id}/santa-letters")
async def list_santa_letters(
    user_id: int, coordinator: RoomCoordinator = Depends(get_coordinator),
):
    """Every assignment where the user was the giver, newest first."""
    results = await coordinator.santa_letters(UserId(user_id))
    return {"letters": [r.to_giver_dict() for r in results]}
