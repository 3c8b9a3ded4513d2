"""AWS Lambda entry point for an API Gateway WebSocket API.

Configure the function handler as ``chat_relay.interface.lambda_handler.handler``.
``$connect`` and ``$disconnect`` are acknowledged; every other route key
carries a chat envelope in ``body`` and is answered by pushing to the
caller's connection through the API Gateway Management API.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping

from chat_relay.domain.entities import ConnectionTarget, InboundRequest, ResponseMode
from chat_relay.domain.exceptions import ChatRelayError
from chat_relay.domain.ports.delivery_sink import DeliverySink
from chat_relay.infrastructure.apigw_sink import ApiGatewaySink, make_management_client
from chat_relay.infrastructure.config import Settings, load_settings
from chat_relay.infrastructure.openai_adapter import OpenAIAdapter
from chat_relay.infrastructure.prompt_templates import PromptTemplates
from chat_relay.interface.error_handlers import error_response
from chat_relay.interface.schemas import parse_envelope
from chat_relay.services.response_dispatcher import ResponseDispatcher

logger = logging.getLogger(__name__)

CONNECT_ROUTE_KEY = "$connect"
DISCONNECT_ROUTE_KEY = "$disconnect"
STATUS_OK = 200


def _default_client_factory(settings: Settings) -> OpenAIAdapter:
    return OpenAIAdapter(
        api_key=settings.openai_api_key.get_secret_value(),
        base_url=settings.openai_base_url,
        max_retries=settings.openai_max_retries,
    )


class LambdaRelay:
    """Per-container state for the Lambda transport.

    Settings, prompts and the push client are built once per container.  The
    OpenAI client is created per invocation because each invocation runs on
    its own event loop.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        sink: DeliverySink | None = None,
        prompts: PromptTemplates | None = None,
        client_factory: Callable[[Settings], OpenAIAdapter] = _default_client_factory,
    ) -> None:
        self._settings = settings
        self._sink = sink or ApiGatewaySink(make_management_client(settings.api_gw_endpoint))
        self._prompts = prompts or PromptTemplates.from_environ()
        self._client_factory = client_factory

    def handle(self, event: Mapping[str, Any]) -> dict[str, Any]:
        """Handle one API Gateway WebSocket proxy event."""
        request_context = event.get("requestContext") or {}
        route_key = request_context.get("routeKey", "")

        if route_key in (CONNECT_ROUTE_KEY, DISCONNECT_ROUTE_KEY):
            logger.info("%s %s", route_key, request_context.get("connectionId", ""))
            return {"statusCode": STATUS_OK}

        target = ConnectionTarget(
            connection_id=request_context.get("connectionId", ""),
            push_endpoint=self._settings.api_gw_endpoint,
        )
        try:
            request = parse_envelope(event.get("body"))
            mode = asyncio.run(self._relay(request, target))
        except Exception as exc:
            failure = error_response(exc)
            return {"statusCode": failure.code, "body": failure.message}

        logger.info("Delivered %s response to %s", mode.value, target.connection_id)
        return {"statusCode": STATUS_OK}

    async def _relay(self, request: InboundRequest, target: ConnectionTarget) -> ResponseMode:
        llm = self._client_factory(self._settings)
        try:
            dispatcher = ResponseDispatcher(
                llm=llm,
                sink=self._sink,
                resolve_prompt=self._prompts.resolve,
                model=self._settings.openai_model,
            )
            return await dispatcher.dispatch(request, target)
        finally:
            await llm.close()


_relay: LambdaRelay | None = None


def _get_relay() -> LambdaRelay:
    """Build the container-wide relay on first use (cold start)."""
    global _relay  # noqa: PLW0603
    if _relay is None:
        settings = load_settings(require_push_endpoint=True)
        logging.getLogger().setLevel(settings.log_level.upper())
        _relay = LambdaRelay(settings)
    return _relay


def handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Lambda handler."""
    return _get_relay().handle(event)
