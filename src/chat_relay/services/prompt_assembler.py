"""Prompt assembler — builds the message sequence sent upstream.

This is the final transformation before the conversation reaches the
completion client: exactly one system message, then the caller's turns.
"""

from __future__ import annotations

from typing import Iterable

from chat_relay.domain.entities import AssembledMessages, ChatMessage, ChatTurn
from chat_relay.domain.exceptions import ConfigMissingError

SYSTEM_ROLE = "system"


def assemble(prompt_template: str, turns: Iterable[ChatTurn]) -> AssembledMessages:
    """Prefix *turns* with the resolved system prompt.

    An empty *prompt_template* is a hard failure, whatever the reason it is
    empty.
    """
    if not prompt_template:
        raise ConfigMissingError("System prompt template is empty or not configured.")

    messages = [ChatMessage(role=SYSTEM_ROLE, content=prompt_template)]
    messages.extend(
        ChatMessage(role=turn.role.value, content=turn.content) for turn in turns
    )
    return AssembledMessages(messages=tuple(messages))
