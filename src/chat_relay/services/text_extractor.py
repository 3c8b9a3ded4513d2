"""Text extractor — pulls a ``[[...]]``-delimited answer out of free-form model output.

Two grammars are supported.  Both scan left to right and only the first
bracketed occurrence is ever returned.  Matching is ASCII-only, so ``\\d``
means ``0-9`` and ``\\w`` means ``[A-Za-z0-9_]``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from chat_relay.domain.exceptions import NoMatchError

# ── Compiled patterns ───────────────────────────────────────────────────────

_INTEGER_RE = re.compile(r"\[\[(\d+)\]\]", re.ASCII)
_WORDS_RE = re.compile(r"\[\[(\w+(?:\s+\w+)*\s*)\]\]", re.ASCII)


# ── Result type ─────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """A successful extraction.

    ``raw`` is the captured text exactly as it appeared between the
    delimiters; ``value`` is the parsed form (``int`` for the integer grammar).
    """

    raw: str
    value: int | str


# ── Public API ──────────────────────────────────────────────────────────────


def extract_integer(text: str) -> ExtractionResult:
    """Return the first ``[[<digits>]]`` value in *text*.

    Raises :class:`NoMatchError` carrying the full *text* if there is none.
    """
    match = _INTEGER_RE.search(text)
    if match is None:
        raise NoMatchError(text)
    digits = match.group(1)
    return ExtractionResult(raw=digits, value=int(digits))


def extract_words(text: str) -> ExtractionResult:
    """Return the first ``[[word word ...]]`` value in *text*, interior spaces kept."""
    match = _WORDS_RE.search(text)
    if match is None:
        raise NoMatchError(text)
    words = match.group(1)
    return ExtractionResult(raw=words, value=words)
