"""Response dispatcher — the single entry point for the relay's business logic.

It depends only on the two ports (:class:`CompletionClient` and
:class:`DeliverySink`) and the pure service modules.  The interface layer
injects concrete adapters at runtime.

Each inbound call selects exactly one strategy from its ``response_type``:

======== ============ ======================= ==============================
Mode     Upstream     Post-processing         Delivery
======== ============ ======================= ==============================
full     complete     none                    one push of the raw answer
int      complete     integer grammar         one push of the digit run
string   complete     word-sequence grammar   one push of the matched words
stream   stream       confusable punctuation  one push per fragment + sentinel
======== ============ ======================= ==============================
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Protocol

from chat_relay.domain.entities import (
    AssembledMessages,
    ConnectionTarget,
    InboundRequest,
    ResponseMode,
)
from chat_relay.domain.exceptions import (
    ConfigMissingError,
    ExtractionFailedError,
    InvalidModeError,
    NoMatchError,
)
from chat_relay.domain.ports.delivery_sink import DeliverySink
from chat_relay.domain.ports.llm_gateway import CompletionClient
from chat_relay.services.prompt_assembler import assemble
from chat_relay.services.punctuation import replace_confusables
from chat_relay.services.text_extractor import (
    ExtractionResult,
    extract_integer,
    extract_words,
)

logger = logging.getLogger(__name__)

END_STREAM_MESSAGE = "<END>"


# ── Strategy contract ───────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class DispatchContext:
    """Everything a strategy needs for one call."""

    model: str
    messages: AssembledMessages
    target: ConnectionTarget
    llm: CompletionClient
    sink: DeliverySink


class ResponseStrategy(Protocol):
    """One way of turning an upstream answer into pushes."""

    async def run(self, ctx: DispatchContext) -> None:
        ...


# ── Strategies ──────────────────────────────────────────────────────────────


class FullAnswerStrategy:
    """Push the upstream answer unmodified."""

    async def run(self, ctx: DispatchContext) -> None:
        answer = await ctx.llm.complete(ctx.model, ctx.messages)
        await ctx.sink.push(ctx.target, answer)


class ExtractingStrategy:
    """Push only the ``[[...]]`` value found by *extractor*.

    Nothing is pushed when the answer contains no match; the call fails with
    :class:`ExtractionFailedError` instead.
    """

    def __init__(self, extractor: Callable[[str], ExtractionResult]) -> None:
        self._extract = extractor

    async def run(self, ctx: DispatchContext) -> None:
        answer = await ctx.llm.complete(ctx.model, ctx.messages)
        try:
            result = self._extract(answer)
        except NoMatchError as exc:
            logger.warning("No delimited value in upstream answer (%d chars)", len(answer))
            raise ExtractionFailedError(exc.source_text) from exc

        logger.info("Extracted value %r", result.value)
        await ctx.sink.push(ctx.target, result.raw)


class StreamStrategy:
    """Relay every fragment as it arrives, then push the end-of-stream sentinel.

    The fragment iterator is always closed on exit, which releases the
    upstream stream handle even when a push fails part-way through.
    """

    def __init__(self, sentinel: str = END_STREAM_MESSAGE) -> None:
        self._sentinel = sentinel

    async def run(self, ctx: DispatchContext) -> None:
        pushed = 0
        async with aclosing(ctx.llm.stream(ctx.model, ctx.messages)) as fragments:
            async for fragment in fragments:
                await ctx.sink.push(ctx.target, replace_confusables(fragment))
                pushed += 1

        await ctx.sink.push(ctx.target, self._sentinel)
        logger.info("Streamed %d fragment(s) to %s", pushed, ctx.target.connection_id)


STRATEGIES: Mapping[ResponseMode, ResponseStrategy] = MappingProxyType(
    {
        ResponseMode.FULL: FullAnswerStrategy(),
        ResponseMode.INT: ExtractingStrategy(extract_integer),
        ResponseMode.STRING: ExtractingStrategy(extract_words),
        ResponseMode.STREAM: StreamStrategy(),
    }
)


def parse_mode(raw: str) -> ResponseMode:
    """Map a ``response_type`` string onto :class:`ResponseMode`."""
    try:
        return ResponseMode(raw)
    except ValueError:
        raise InvalidModeError(f"Incorrect response type: {raw}") from None


# ── Dispatcher ──────────────────────────────────────────────────────────────


class ResponseDispatcher:
    """Runs one inbound request through the strategy its mode selects.

    Parameters
    ----------
    llm:
        Adapter for the upstream chat-completion service.
    sink:
        Adapter that pushes payloads to the client connection.
    resolve_prompt:
        Maps a ``prompt_template`` name to the system prompt text; returns
        ``""`` for unknown names.
    model:
        Requested model name from configuration.  Empty or unknown names fall
        back to the client's default model.
    strategies:
        Override the mode → strategy table (tests only).
    """

    def __init__(
        self,
        llm: CompletionClient,
        sink: DeliverySink,
        resolve_prompt: Callable[[str], str],
        model: str = "",
        strategies: Mapping[ResponseMode, ResponseStrategy] = STRATEGIES,
    ) -> None:
        self._llm = llm
        self._sink = sink
        self._resolve_prompt = resolve_prompt
        self._model = model
        self._strategies = strategies

    async def dispatch(self, request: InboundRequest, target: ConnectionTarget) -> ResponseMode:
        """Handle *request* end to end and return the mode that was run.

        The mode is validated before any upstream call is made.
        """
        mode = parse_mode(request.response_type)
        strategy = self._strategies[mode]
        logger.info("Dispatching %s request for %s", mode.value, target.connection_id)

        try:
            messages = assemble(self._resolve_prompt(request.prompt_template), request.turns)
        except ConfigMissingError as exc:
            raise ConfigMissingError(
                f"Prompt not found in the environment variable {request.prompt_template}"
            ) from exc
        logger.debug("Assembled %d message(s)", len(messages))

        model = await self._llm.resolve_model(self._model)
        await strategy.run(
            DispatchContext(
                model=model,
                messages=messages,
                target=target,
                llm=self._llm,
                sink=self._sink,
            )
        )
        return mode
