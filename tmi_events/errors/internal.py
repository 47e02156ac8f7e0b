"""Centralized internal error hierarchy.

These exceptions give the router semantic categories for the ways a single
line can fail. Apart from AuthenticationFailedError they never leave the
layer: the router catches them, logs a diagnostic and drops the line.

Classes:
  TranslatorError           – Base for all internal errors.
  AuthenticationFailedError – The server rejected the login (terminal).
  IdentityResolutionError   – A channel or user could not be resolved.
  MalformedLineError        – Expected tag absent or value unparsable.
"""

from __future__ import annotations

from collections.abc import Mapping


class TranslatorError(Exception):
    """Base class for all translation-layer errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class AuthenticationFailedError(TranslatorError):
    """Raised when the server answers the login with an authentication failure.

    Terminal for the current connection attempt; the connection-management
    layer owning the transport decides whether to refresh credentials.
    """


class IdentityResolutionError(TranslatorError):
    """Raised when a required channel or user lookup returns nothing."""


class MalformedLineError(TranslatorError):
    """Raised when a line lacks an expected tag or carries an unparsable value."""


__all__ = [
    "TranslatorError",
    "AuthenticationFailedError",
    "IdentityResolutionError",
    "MalformedLineError",
]
