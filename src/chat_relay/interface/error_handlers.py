"""Exception → status translation shared by every transport.

Each domain exception maps to a specific status code and the standard
``{"status": "error", "code": ..., "message": "..."}`` envelope.
"""

from __future__ import annotations

import logging

from chat_relay.domain.exceptions import (
    ChatRelayError,
    ConfigMissingError,
    ConnectionGoneError,
    ExtractionFailedError,
    InvalidModeError,
    InvalidRequestError,
    StreamError,
    UpstreamError,
)
from chat_relay.interface.schemas import ErrorResponse

logger = logging.getLogger(__name__)

_EXCEPTION_STATUS: list[tuple[type[ChatRelayError], int]] = [
    (InvalidRequestError, 400),
    (InvalidModeError, 400),
    (ConfigMissingError, 500),
    (UpstreamError, 502),
    (StreamError, 502),
    (ExtractionFailedError, 502),
    (ConnectionGoneError, 410),
]

INTERNAL_ERROR_STATUS = 500
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def status_for(exc: BaseException) -> int:
    """Return the status code for *exc* (500 for anything unmapped)."""
    for exc_type, code in _EXCEPTION_STATUS:
        if isinstance(exc, exc_type):
            return code
    return INTERNAL_ERROR_STATUS


def error_response(exc: BaseException) -> ErrorResponse:
    """Build the error envelope for *exc*, hiding detail of unexpected errors."""
    if isinstance(exc, ChatRelayError):
        logger.warning("%s: %s", type(exc).__name__, exc)
        return ErrorResponse(code=status_for(exc), message=str(exc))

    logger.error("Unhandled exception: %s", type(exc).__name__, exc_info=exc)
    return ErrorResponse(code=INTERNAL_ERROR_STATUS, message=INTERNAL_ERROR_MESSAGE)
