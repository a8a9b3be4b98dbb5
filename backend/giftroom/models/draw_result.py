"""DrawResult ORM — one giver -> receiver assignment of a committed draw.

Invariants:
    - For a fixed room the (giver, receiver) rows form a derangement of the participants
    - letter_id is the RECEIVER's selected letter (the giver reads it)
    - At most one giver row and one receiver row per user per room (unique constraints)

Design Decisions:
    - room_id is a plain indexed column, not a foreign key: results outlive the room
      so givers keep their assignment history after the owner deletes it
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from giftroom.db.base import Base


class DrawResult(Base):
    __tablename__ = "room_draw_results"
    __table_args__ = (
        UniqueConstraint("room_id", "giver_id", name="uq_draw_giver"),
        UniqueConstraint("room_id", "receiver_id", name="uq_draw_receiver"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    giver_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True,
    )
    receiver_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False,
    )
    letter_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("letters.id"), nullable=False,
    )
    drawn_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
