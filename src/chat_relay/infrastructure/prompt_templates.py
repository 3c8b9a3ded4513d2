"""Prompt template lookup — system prompts are held in environment variables."""

from __future__ import annotations

import os
from types import MappingProxyType
from typing import Mapping


class PromptTemplates:
    """Read-only snapshot of the environment used to resolve prompt names.

    The inbound ``prompt_template`` field is the *name* of a variable, never
    the prompt text itself.
    """

    def __init__(self, source: Mapping[str, str]) -> None:
        self._templates = MappingProxyType(dict(source))

    @classmethod
    def from_environ(cls) -> PromptTemplates:
        return cls(os.environ)

    def resolve(self, name: str) -> str:
        """Return the prompt stored under *name*, or ``""`` if there is none."""
        if not name:
            return ""
        return self._templates.get(name, "")
