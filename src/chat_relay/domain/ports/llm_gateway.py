"""Port: completion client — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import AsyncIterator, Protocol

from chat_relay.domain.entities import AssembledMessages


class CompletionClient(Protocol):
    """Abstract contract for the upstream chat-completion service."""

    async def resolve_model(self, requested: str) -> str:
        """Return *requested* if the service advertises it, else the default model."""
        ...

    async def complete(self, model: str, messages: AssembledMessages) -> str:
        """Run one non-streaming completion and return the full answer text."""
        ...

    def stream(self, model: str, messages: AssembledMessages) -> AsyncIterator[str]:
        """Yield incremental fragments in arrival order until the upstream completes.

        The iterator owns the upstream stream handle and releases it when it
        finishes, fails, or is closed early via ``aclose()``.
        """
        ...
