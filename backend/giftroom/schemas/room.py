"""Room Schemas — Pydantic request models with camelCase aliases.

Invariants:
    - Every body accepts camelCase (roomId) or snake_case (room_id) keys
    - Text fields are stripped; empty-after-strip is rejected
    - Ids are positive integers

Design Decisions:
    - Responses are built from core records' to_dict(), not response_model classes:
      the same dicts feed SSE events, so HTTP and stream payloads cannot drift apart
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True,
    )


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("cannot be empty or whitespace")
    return v


class RoomCreate(_CamelModel):
    name: str = Field(min_length=1, max_length=100)
    owner_id: int = Field(gt=0)
    secret: str = Field(min_length=1, max_length=80)

    @field_validator("name", "secret")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _strip_required(v)


class RoomJoin(_CamelModel):
    room_id: int = Field(gt=0)
    secret: str = Field(min_length=1, max_length=100)
    user_id: int = Field(gt=0)


class RoomLeave(_CamelModel):
    room_id: int = Field(gt=0)
    user_id: int = Field(gt=0)


class UserAction(_CamelModel):
    """Body of owner/participant actions that only identify the caller."""
    user_id: int = Field(gt=0)


class LetterSelect(_CamelModel):
    user_id: int = Field(gt=0)
    letter_id: int = Field(gt=0)
