"""Letter Store — SQL adapter for the letter collaborator.

Invariants:
    - The room core only reads letters and flips in_use; content is never modified here
    - available_for returns only letters with in_use == False, newest first
    - mark_in_use is idempotent and never clears the flag
"""

from collections.abc import Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from giftroom.core.domain_types import LetterId, UserId
from giftroom.core.room_records import LetterRecord
from giftroom.models.letter import Letter


def _to_record(letter: Letter) -> LetterRecord:
    return LetterRecord(
        id=LetterId(letter.id),
        owner_id=UserId(letter.owner_id),
        heading=letter.heading,
        message=letter.message,
        in_use=letter.in_use,
    )


class SqlLetterStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, letter_id: LetterId) -> LetterRecord | None:
        result = await self.db.execute(
            select(Letter).where(Letter.id == letter_id)
            .execution_options(populate_existing=True),
        )
        letter = result.scalar_one_or_none()
        return _to_record(letter) if letter else None

    async def available_for(self, user_id: UserId) -> list[LetterRecord]:
        result = await self.db.execute(
            select(Letter)
            .where(Letter.owner_id == user_id)
            .where(Letter.in_use.is_(False))
            .order_by(Letter.id.desc()),
        )
        return [_to_record(letter) for letter in result.scalars().all()]

    async def mark_in_use(self, letter_ids: Sequence[LetterId]) -> None:
        if not letter_ids:
            return
        await self.db.execute(
            update(Letter)
            .where(Letter.id.in_(set(letter_ids)))
            .values(in_use=True),
        )
