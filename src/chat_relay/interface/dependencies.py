"""FastAPI dependency injection wiring."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import FastAPI, WebSocket

from chat_relay.domain.ports.delivery_sink import DeliverySink
from chat_relay.domain.ports.llm_gateway import CompletionClient
from chat_relay.infrastructure.config import Settings
from chat_relay.infrastructure.openai_adapter import OpenAIAdapter
from chat_relay.infrastructure.prompt_templates import PromptTemplates
from chat_relay.services.response_dispatcher import ResponseDispatcher


@dataclass(frozen=True, slots=True)
class RelayRuntime:
    """Resolved, read-only state shared by every connection."""

    settings: Settings
    prompts: PromptTemplates
    llm: CompletionClient

    def dispatcher_for(self, sink: DeliverySink) -> ResponseDispatcher:
        return ResponseDispatcher(
            llm=self.llm,
            sink=sink,
            resolve_prompt=self.prompts.resolve,
            model=self.settings.openai_model,
        )


async def startup(
    app: FastAPI,
    settings: Settings,
    llm: CompletionClient | None = None,
    prompts: PromptTemplates | None = None,
) -> None:
    """Initialise shared resources — called from the lifespan context manager."""
    adapter: OpenAIAdapter | None = None
    if llm is None:
        adapter = OpenAIAdapter(
            api_key=settings.openai_api_key.get_secret_value(),
            base_url=settings.openai_base_url,
            max_retries=settings.openai_max_retries,
        )
        llm = adapter

    app.state.runtime = RelayRuntime(
        settings=settings,
        prompts=prompts or PromptTemplates.from_environ(),
        llm=llm,
    )
    app.state.owned_adapter = adapter


async def shutdown(app: FastAPI) -> None:
    """Release shared resources."""
    adapter: OpenAIAdapter | None = getattr(app.state, "owned_adapter", None)
    if adapter:
        await adapter.close()
        app.state.owned_adapter = None


def get_runtime(websocket: WebSocket) -> RelayRuntime:
    """Return the runtime built at startup."""
    runtime: RelayRuntime | None = getattr(websocket.app.state, "runtime", None)
    assert runtime is not None, "startup() was not called"
    return runtime
