"""ORM Models — SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Room is the aggregate root for participants; draw results outlive their room

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from giftroom.models.user import User  # noqa: F401
from giftroom.models.letter import Letter  # noqa: F401
from giftroom.models.room import Room  # noqa: F401
from giftroom.models.participant import Participant  # noqa: F401
from giftroom.models.draw_result import DrawResult  # noqa: F401
