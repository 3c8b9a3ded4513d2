from __future__ import annotations

from typing import AsyncIterator

import pytest

from chat_relay.domain.entities import AssembledMessages, ConnectionTarget
from chat_relay.domain.exceptions import ConnectionGoneError, StreamError
from chat_relay.infrastructure.prompt_templates import PromptTemplates


class FakeCompletionClient:
    """In-memory CompletionClient that records every call."""

    def __init__(
        self,
        answer: str = "",
        fragments: list[str] | None = None,
        fail_after: int | None = None,
        default_model: str = "default-model",
    ) -> None:
        self.answer = answer
        self.fragments = fragments or []
        self.fail_after = fail_after
        self.default_model = default_model
        self.calls: list[tuple[str, str, AssembledMessages]] = []
        self.stream_closed = False
        self.closed = False
        self.events: list[str] = []

    @property
    def upstream_calls(self) -> int:
        return len(self.calls)

    async def resolve_model(self, requested: str) -> str:
        return requested or self.default_model

    async def complete(self, model: str, messages: AssembledMessages) -> str:
        self.calls.append(("complete", model, messages))
        return self.answer

    async def stream(self, model: str, messages: AssembledMessages) -> AsyncIterator[str]:
        self.calls.append(("stream", model, messages))
        try:
            for index, fragment in enumerate(self.fragments):
                if self.fail_after is not None and index == self.fail_after:
                    raise StreamError("Stream error: connection reset")
                self.events.append(f"recv:{fragment}")
                yield fragment
        finally:
            self.stream_closed = True

    async def close(self) -> None:
        self.closed = True


class RecordingSink:
    """DeliverySink that keeps every push; optionally fails on the N-th push."""

    def __init__(self, fail_on: int | None = None, events: list[str] | None = None) -> None:
        self.pushes: list[tuple[ConnectionTarget, str]] = []
        self.fail_on = fail_on
        self.events = events

    @property
    def payloads(self) -> list[str]:
        return [payload for _, payload in self.pushes]

    async def push(self, target: ConnectionTarget, payload: str) -> None:
        if self.fail_on is not None and len(self.pushes) == self.fail_on:
            raise ConnectionGoneError(f"Can't post response to websocket {target.connection_id}")
        if self.events is not None:
            self.events.append(f"push:{payload}")
        self.pushes.append((target, payload))


@pytest.fixture
def target() -> ConnectionTarget:
    return ConnectionTarget(connection_id="conn-1", push_endpoint="https://example.execute-api/prod")


@pytest.fixture
def prompts() -> PromptTemplates:
    return PromptTemplates({"SYS": "You are a terse assistant."})


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
