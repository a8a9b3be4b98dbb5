"""User Directory — SQL adapter for the identity collaborator.

Invariants:
    - Read-only: never inserts or updates users
    - Display names reach snapshots through store joins, not through this adapter
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from giftroom.core.domain_types import UserId
from giftroom.models.user import User


class SqlUserDirectory:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, user_id: UserId) -> bool:
        result = await self.db.execute(select(User.id).where(User.id == user_id))
        return result.scalar_one_or_none() is not None
