"""Room ORM — aggregate root for a gift-exchange room.

Invariants:
    - Exactly one owner (owner_id); the owner is always also a participant
    - secret is unique across rooms (it doubles as the join code)
    - Deleting a room deletes its participants (ORM cascade + ON DELETE CASCADE)

Design Decisions:
    - sqlite_autoincrement: room ids are never reused, because draw results keep
      pointing at the ids of deleted rooms
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from giftroom.db.base import Base


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    secret: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    participants: Mapped[list["Participant"]] = relationship(
        "Participant", back_populates="room",
        cascade="all, delete-orphan", passive_deletes=True,
    )
