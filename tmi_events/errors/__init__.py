"""Error hierarchy and logging helpers for the translation layer."""

from .handling import categorize_error, log_error  # noqa: F401
from .internal import (  # noqa: F401
    AuthenticationFailedError,
    IdentityResolutionError,
    MalformedLineError,
    TranslatorError,
)

__all__ = [
    "AuthenticationFailedError",
    "IdentityResolutionError",
    "MalformedLineError",
    "TranslatorError",
    "categorize_error",
    "log_error",
]
