"""Tagged request/response models for the ledger's apply-move operation.

Field names are snake_case in Python and camelCase on the wire
(``userId``, ``pointsEarned``, ``movesUsed``, ``newScore``, ...). Every reply
carries a ``kind`` tag so the client can tell the variants apart without
inspecting status codes or optional fields.
"""

from datetime import datetime
from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from tilematch.constants import MAX_MOVES


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class ApplyMoveRequest(_WireModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, strict=True, extra="forbid"
    )

    user_id: str = Field(min_length=1)
    points_earned: int = Field(ge=0)
    moves_used: int = Field(ge=0)


class MoveApplied(_WireModel):
    kind: Literal["success"] = "success"
    new_score: int = Field(ge=0)
    remaining_moves: int = Field(ge=0, le=MAX_MOVES)
    next_reset: Optional[datetime] = None


class MoveRejected(_WireModel):
    kind: Literal["rejected"] = "rejected"
    message: str = "Not enough moves"
    available_moves: int = Field(ge=0, le=MAX_MOVES)


class UserNotFound(_WireModel):
    kind: Literal["not_found"] = "not_found"
    message: str = "User not found"


class InvalidRequest(_WireModel):
    kind: Literal["invalid"] = "invalid"
    message: str = "Invalid request data"


LedgerReply = Annotated[
    Union[MoveApplied, MoveRejected, UserNotFound, InvalidRequest],
    Field(discriminator="kind"),
]

_REPLY_ADAPTER: TypeAdapter = TypeAdapter(LedgerReply)


def parse_reply(payload: Mapping[str, Any]) -> LedgerReply:
    """Validate a wire reply into its tagged model (raises pydantic.ValidationError)."""
    return _REPLY_ADAPTER.validate_python(dict(payload))
