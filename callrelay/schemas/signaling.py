"""Wire contracts for the signaling WebSocket."""
from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class InboundEvent(str, enum.Enum):
    CALL_USER = "call-user"
    MAKE_ANSWER = "make-answer"
    REJECT_CALL = "reject-call"


class OutboundEvent(str, enum.Enum):
    UPDATE_USER_LIST = "update-user-list"
    CALL_MADE = "call-made"
    ANSWER_MADE = "answer-made"
    CALL_REJECTED = "call-rejected"
    REMOVE_USER = "remove-user"


class Envelope(BaseModel):
    """A single named message in either direction."""

    event: str = Field(..., min_length=1)
    data: Any = Field(default_factory=dict)


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class CallUserRequest(WireModel):
    to: str
    offer: Any = Field(..., description="Opaque negotiation offer")


class MakeAnswerRequest(WireModel):
    to: str
    answer: Any = Field(..., description="Opaque negotiation answer")


class RejectCallRequest(WireModel):
    # Names the original caller: the peer the rejection is delivered to.
    caller: str = Field(..., alias="from")


class UserList(WireModel):
    me: str | None = None
    users: list[str]

    def to_wire(self) -> dict[str, Any]:
        # Join broadcasts carry no ``me`` field.
        return self.model_dump(by_alias=True, exclude_none=True)


class CallMade(WireModel):
    sender: str = Field(..., alias="from")
    to: str
    offer: Any
    socket: str


class AnswerMade(WireModel):
    sender: str = Field(..., alias="from")
    to: str
    socket: str
    answer: Any


class CallRejected(WireModel):
    sender: str = Field(..., alias="from")
    to: str
    socket: str


class RemoveUser(WireModel):
    socket_id: str = Field(..., alias="socketId")
