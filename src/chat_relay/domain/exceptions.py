"""Domain exception hierarchy.

Each exception maps to a specific status code at the interface layer.
Inner layers raise these; the transports translate them.
"""

from __future__ import annotations


class ChatRelayError(Exception):
    """Base exception for the entire application."""


# ── Input validation ────────────────────────────────────────────────────────


class InvalidRequestError(ChatRelayError):
    """The inbound envelope is not valid JSON or does not match the schema."""


class InvalidModeError(ChatRelayError):
    """The ``response_type`` value is not one of the supported modes."""


# ── Configuration ───────────────────────────────────────────────────────────


class ConfigMissingError(ChatRelayError):
    """A required configuration value (credential, endpoint, prompt) is absent."""


# ── Upstream errors ─────────────────────────────────────────────────────────


class UpstreamError(ChatRelayError):
    """A non-streaming call to the completion service failed."""


class StreamError(ChatRelayError):
    """The streaming call broke before the upstream signalled completion."""


# ── Extraction errors ───────────────────────────────────────────────────────


class NoMatchError(ChatRelayError):
    """No ``[[...]]`` value matching the grammar was found."""

    def __init__(self, source_text: str) -> None:
        super().__init__(f"No delimited value found in: {source_text}")
        self.source_text = source_text


class ExtractionFailedError(ChatRelayError):
    """An ``int``/``string`` call produced no extractable answer."""

    def __init__(self, source_text: str) -> None:
        super().__init__(f"Can't parse OpenAI API response: {source_text}")
        self.source_text = source_text


# ── Delivery errors ─────────────────────────────────────────────────────────


class ConnectionGoneError(ChatRelayError):
    """A push to the client connection failed."""
