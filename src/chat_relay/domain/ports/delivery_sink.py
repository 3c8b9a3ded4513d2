"""Port: delivery sink — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from chat_relay.domain.entities import ConnectionTarget


class DeliverySink(Protocol):
    """Abstract contract for pushing a payload to one live client connection."""

    async def push(self, target: ConnectionTarget, payload: str) -> None:
        """Deliver *payload* once; raise ``ConnectionGoneError`` on failure."""
        ...
