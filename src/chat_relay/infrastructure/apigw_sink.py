"""API Gateway Management API adapter — implements the DeliverySink port."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from chat_relay.domain.entities import ConnectionTarget
from chat_relay.domain.exceptions import ConnectionGoneError

logger = logging.getLogger(__name__)


def make_management_client(endpoint_url: str) -> Any:
    """Build a boto3 ``apigatewaymanagementapi`` client for *endpoint_url*."""
    return boto3.client("apigatewaymanagementapi", endpoint_url=endpoint_url)


class ApiGatewaySink:
    """Concrete DeliverySink that posts to a WebSocket API connection.

    boto3 calls block, so each push runs in a worker thread.  Pushes for a
    single call are awaited one at a time, which keeps them in order.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    async def push(self, target: ConnectionTarget, payload: str) -> None:
        """POST @connections/{connection_id} with *payload* as the body."""
        try:
            await asyncio.to_thread(
                self._client.post_to_connection,
                ConnectionId=target.connection_id,
                Data=payload.encode("utf-8"),
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "Unknown")
            logger.warning(
                "Push to %s via %s failed: %s", target.connection_id, target.push_endpoint, code
            )
            raise ConnectionGoneError(
                f"Can't post response to websocket {target.connection_id}: {code}"
            ) from exc
        except BotoCoreError as exc:
            logger.warning("Push to %s failed: %s", target.connection_id, exc)
            raise ConnectionGoneError(
                f"Can't post response to websocket {target.connection_id}: {exc}"
            ) from exc
