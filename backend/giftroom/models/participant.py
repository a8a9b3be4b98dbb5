"""Participant ORM — (room, user) membership with letter selection and readiness.

Invariants:
    - Unique per (room_id, user_id): composite primary key
    - is_ready implies selected_letter_id IS NOT NULL (CHECK constraint)
    - joined_at orders the participant list after the viewer/owner

Design Decisions:
    - Composite PK over surrogate id: a duplicate join is an integrity error, not a second row
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, CheckConstraint, DateTime, ForeignKey, Integer,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from giftroom.db.base import Base


class Participant(Base):
    __tablename__ = "room_participants"
    __table_args__ = (
        CheckConstraint(
            "NOT is_ready OR selected_letter_id IS NOT NULL",
            name="ck_ready_requires_letter",
        ),
    )

    room_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("rooms.id", ondelete="CASCADE"), primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), primary_key=True,
    )
    selected_letter_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("letters.id"), nullable=True,
    )
    is_ready: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    room: Mapped["Room"] = relationship("Room", back_populates="participants")
