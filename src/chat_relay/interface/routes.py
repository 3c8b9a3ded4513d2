"""WebSocket route — a thin controller that delegates to the dispatcher."""

from __future__ import annotations

import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from chat_relay.domain.entities import ConnectionTarget
from chat_relay.domain.exceptions import ConnectionGoneError
from chat_relay.infrastructure.websocket_sink import WebSocketSink
from chat_relay.interface.dependencies import RelayRuntime, get_runtime
from chat_relay.interface.error_handlers import error_response
from chat_relay.interface.schemas import parse_envelope

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def relay(
    websocket: WebSocket,
    runtime: RelayRuntime = Depends(get_runtime),
) -> None:
    """Answer every text frame received on the connection.

    Successful answers arrive as raw text frames; failures arrive as a JSON
    error envelope.
    """
    await websocket.accept()
    target = ConnectionTarget(connection_id=uuid4().hex, push_endpoint=websocket.url.path)
    sink = WebSocketSink(websocket)
    dispatcher = runtime.dispatcher_for(sink)
    logger.info("Connected %s", target.connection_id)

    try:
        while True:
            body = await websocket.receive_text()
            try:
                try:
                    await dispatcher.dispatch(parse_envelope(body), target)
                except ConnectionGoneError:
                    raise
                except Exception as exc:
                    await sink.push_json(target, error_response(exc).model_dump())
            except ConnectionGoneError:
                logger.warning("Connection %s gone mid-delivery", target.connection_id)
                return
    except WebSocketDisconnect:
        logger.info("Disconnected %s", target.connection_id)
