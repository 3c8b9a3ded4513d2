"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from chat_relay.domain.ports.llm_gateway import CompletionClient
from chat_relay.infrastructure.config import Settings, load_settings
from chat_relay.infrastructure.prompt_templates import PromptTemplates
from chat_relay.interface.dependencies import shutdown, startup
from chat_relay.interface.routes import router


def create_app(
    settings: Settings | None = None,
    llm: CompletionClient | None = None,
    prompts: PromptTemplates | None = None,
) -> FastAPI:
    """Build and wire the FastAPI application.

    Configuration is resolved here, so a missing credential stops the server
    before it accepts connections.
    """
    resolved = settings if settings is not None else load_settings(require_push_endpoint=False)

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage startup / shutdown of shared resources."""
        await startup(app, resolved, llm=llm, prompts=prompts)
        yield
        await shutdown(app)

    app = FastAPI(
        title="OpenAI WebSocket Relay",
        version="1.0.0",
        description=(
            "Forwards chat requests to the OpenAI chat-completions API with a "
            "server-held system prompt and pushes the answer back over a "
            "WebSocket, optionally token by token."
        ),
        lifespan=_lifespan,
    )

    app.include_router(router)

    # ── Health check (simple liveness probe) ────────────────────────────

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
