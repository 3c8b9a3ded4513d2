"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ChatRole(str, Enum):
    """Role of a caller-supplied conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


class ResponseMode(str, Enum):
    """How the upstream answer is interpreted and delivered."""

    INT = "int"
    STRING = "string"
    FULL = "full"
    STREAM = "stream"


@dataclass(frozen=True, slots=True)
class ChatTurn:
    """One conversation turn as received from the client."""

    role: ChatRole
    content: str


@dataclass(frozen=True, slots=True)
class InboundRequest:
    """A single chat request, read-only for the lifetime of the call.

    ``response_type`` is kept as the raw string so an unknown value can be
    rejected by the dispatcher before any upstream work starts.
    """

    prompt_template: str
    turns: tuple[ChatTurn, ...]
    response_type: str


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """A single ``{role, content}`` entry sent upstream."""

    role: str
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True, slots=True)
class AssembledMessages:
    """System message followed by the caller's turns, in original order."""

    messages: tuple[ChatMessage, ...]

    def as_payload(self) -> list[dict[str, str]]:
        return [m.as_dict() for m in self.messages]

    def __len__(self) -> int:
        return len(self.messages)


@dataclass(frozen=True, slots=True)
class ConnectionTarget:
    """Where pushes for the current call are routed."""

    connection_id: str
    push_endpoint: str
