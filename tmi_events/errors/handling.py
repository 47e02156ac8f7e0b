from __future__ import annotations

import logging
from typing import Any

import aiohttp

from ..logging_config import log_structured_error
from .internal import (
    AuthenticationFailedError,
    IdentityResolutionError,
    MalformedLineError,
    TranslatorError,
)


def categorize_error(error: BaseException) -> str:
    """Map an exception onto the error category used for aggregation."""
    if isinstance(error, IdentityResolutionError):
        return "identity"
    if isinstance(error, MalformedLineError):
        return "malformed"
    if isinstance(error, AuthenticationFailedError):
        return "auth"
    if isinstance(error, aiohttp.ClientError | OSError | TimeoutError):
        return "network"
    if isinstance(error, TranslatorError):
        return "internal"
    return "unknown"


def log_error(
    message: str,
    error: BaseException,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log an error message with the associated exception details.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging. Data carried
            by TranslatorError instances is merged in.
        level: Logging level, ERROR unless the caller knows better.
    """
    merged: dict[str, Any] = {}
    if isinstance(error, TranslatorError):
        merged.update(error.data)
    if context:
        merged.update(context)
    log_structured_error(
        error_type=categorize_error(error),
        message=f"{message}: {error}",
        exception=error,
        context=merged or None,
        level=level,
    )
