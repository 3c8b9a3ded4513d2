"""Direct WebSocket adapter — implements the DeliverySink port for the ASGI server."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from fastapi import WebSocket, WebSocketDisconnect

from chat_relay.domain.entities import ConnectionTarget
from chat_relay.domain.exceptions import ConnectionGoneError

logger = logging.getLogger(__name__)

# uvicorn's ClientDisconnected is an OSError; starlette raises RuntimeError
# when sending on a closed socket.
_SEND_ERRORS = (WebSocketDisconnect, RuntimeError, OSError)


class WebSocketSink:
    """Push each payload as one text frame on an accepted WebSocket."""

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket

    async def push(self, target: ConnectionTarget, payload: str) -> None:
        await self._send(target, self._websocket.send_text, payload)

    async def push_json(self, target: ConnectionTarget, data: dict[str, Any]) -> None:
        """Send *data* as a JSON text frame (used for error envelopes)."""
        await self._send(target, self._websocket.send_json, data)

    async def _send(
        self,
        target: ConnectionTarget,
        send: Callable[[Any], Awaitable[None]],
        data: Any,
    ) -> None:
        try:
            await send(data)
        except _SEND_ERRORS as exc:
            logger.warning("Push to %s failed: %s", target.connection_id, exc)
            raise ConnectionGoneError(
                f"Can't post response to websocket {target.connection_id}"
            ) from exc
