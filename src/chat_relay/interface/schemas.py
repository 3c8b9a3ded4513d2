"""Pydantic envelope DTOs for the transport boundary."""

from __future__ import annotations

from pydantic import BaseModel, ValidationError

from chat_relay.domain.entities import ChatRole, ChatTurn, InboundRequest
from chat_relay.domain.exceptions import InvalidRequestError


class ChatTurnIn(BaseModel):
    """One ``{"role", "content"}`` entry of the inbound ``messages`` list."""

    role: ChatRole
    content: str


class ChatEnvelope(BaseModel):
    """Inbound message payload.

    ``response_type`` stays a plain string here; unknown modes are rejected
    by the dispatcher, not by schema validation.
    """

    prompt_template: str = ""
    messages: list[ChatTurnIn] = []
    response_type: str = ""

    def to_request(self) -> InboundRequest:
        return InboundRequest(
            prompt_template=self.prompt_template,
            turns=tuple(ChatTurn(role=m.role, content=m.content) for m in self.messages),
            response_type=self.response_type,
        )


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    code: int
    message: str


def _describe(exc: ValidationError) -> str:
    messages = []
    for err in exc.errors():
        loc = " → ".join(str(p) for p in err.get("loc", []))
        messages.append(f"{loc}: {err.get('msg', 'validation error')}" if loc else err.get("msg", ""))
    return "; ".join(messages)


def parse_envelope(body: str | bytes | None) -> InboundRequest:
    """Validate a raw JSON body and convert it to an :class:`InboundRequest`."""
    try:
        envelope = ChatEnvelope.model_validate_json(body or "")
    except ValidationError as exc:
        raise InvalidRequestError(f"Error parsing request JSON: {_describe(exc)}") from exc
    return envelope.to_request()
