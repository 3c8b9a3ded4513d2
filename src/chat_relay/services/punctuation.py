"""Punctuation normalizer — maps typographic quote marks to plain ASCII.

Applied to every streamed fragment before it is pushed to the client.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

# ── Substitution table ──────────────────────────────────────────────────────

CONFUSABLES: Mapping[str, str] = MappingProxyType(
    {
        "“": '"',  # left double quotation mark
        "”": '"',  # right double quotation mark
        "‘": "'",  # left single quotation mark
        "’": "'",  # right single quotation mark
        "΄": "'",  # greek tonos
    }
)

_TRANSLATION = str.maketrans(dict(CONFUSABLES))


def replace_confusables(text: str) -> str:
    """Return *text* with every confusable mark replaced by its ASCII form."""
    return text.translate(_TRANSLATION)
