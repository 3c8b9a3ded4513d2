"""OpenAI adapter — implements the CompletionClient port."""

from __future__ import annotations

import logging
from typing import AsyncIterator

from openai import AsyncOpenAI, AuthenticationError, RateLimitError

from chat_relay.domain.entities import AssembledMessages
from chat_relay.domain.exceptions import StreamError, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"


def _wrap_upstream_error(exc: Exception, action: str) -> UpstreamError:
    if isinstance(exc, AuthenticationError):
        return UpstreamError(
            "Invalid OpenAI API key. "
            "Set a valid key in the OPENAI_API_KEY environment variable."
        )
    if isinstance(exc, RateLimitError):
        detail = str(exc)
        logger.error("OpenAI RateLimitError: %s", detail)
        return UpstreamError(f"OpenAI rate limit / quota error: {detail}")
    return UpstreamError(f"{action}: {exc}")


class OpenAIAdapter:
    """Concrete ``CompletionClient`` backed by the OpenAI chat-completions API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        max_retries: int = 2,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(
            api_key=api_key, base_url=base_url, max_retries=max_retries
        )

    async def resolve_model(self, requested: str) -> str:
        """Validate *requested* against the advertised model list.

        Never fails: an empty name, a listing error, or an unknown name all
        fall back to :data:`DEFAULT_MODEL`.
        """
        if not requested:
            return DEFAULT_MODEL

        try:
            available = {model.id async for model in self._client.models.list()}
        except Exception as exc:
            logger.warning(
                "Error getting list of available models: %s. Defaulting to %s",
                exc,
                DEFAULT_MODEL,
            )
            return DEFAULT_MODEL

        if requested not in available:
            logger.warning(
                "Model %s is not a valid model. Defaulting to %s", requested, DEFAULT_MODEL
            )
            return DEFAULT_MODEL
        return requested

    async def complete(self, model: str, messages: AssembledMessages) -> str:
        """Send *messages* and return the completion text."""
        logger.debug("Requesting completion from %s with %d message(s)", model, len(messages))
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=messages.as_payload(),  # type: ignore[arg-type]
            )

            if not response.choices:
                raise UpstreamError("LLM returned no choices.")
            content = response.choices[0].message.content

            if not content:
                raise UpstreamError("LLM returned an empty response.")

            return content

        except UpstreamError:
            raise

        except Exception as exc:
            raise _wrap_upstream_error(exc, "Error sending OpenAI API request") from exc

    async def stream(self, model: str, messages: AssembledMessages) -> AsyncIterator[str]:
        """Yield content deltas as they arrive.

        Chunks without text (role-only or empty deltas) are skipped.  The
        upstream stream is closed on every exit path, including ``aclose()``
        from the consumer.
        """
        logger.debug("Opening stream from %s with %d message(s)", model, len(messages))
        try:
            upstream = await self._client.chat.completions.create(
                model=model,
                messages=messages.as_payload(),  # type: ignore[arg-type]
                stream=True,
            )
        except Exception as exc:
            raise _wrap_upstream_error(exc, "Error requesting OpenAI API stream") from exc

        try:
            async for chunk in upstream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except Exception as exc:
            raise StreamError(f"Stream error: {exc}") from exc
        finally:
            await upstream.close()

    async def close(self) -> None:
        """Release underlying HTTP resources."""
        await self._client.close()
