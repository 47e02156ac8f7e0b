"""
Configuration constants for the TMI event translation layer

This module contains the tunable defaults used throughout the package.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Subscription dedup window (Twitch sometimes delivers the same notice twice)
SUBSCRIPTION_DEDUP_TTL_SECONDS = _get_env_float(
    "SUBSCRIPTION_DEDUP_TTL_SECONDS", 300.0
)  # Entries expire this many seconds after insertion

# Protocol identities
TMI_SERVER_NAME = "tmi.twitch.tv"
LEGACY_NOTIFY_LOGIN = "twitchnotify"
LOGIN_FAILED_NOTICE = ":tmi.twitch.tv NOTICE * :Login authentication failed"

# Helix resolver
HELIX_BASE_URL = "https://api.twitch.tv/helix"
HELIX_USER_CACHE_SIZE = _get_env_int(
    "HELIX_USER_CACHE_SIZE", 1000
)  # Max cached user/channel profiles
HELIX_REQUEST_TIMEOUT_SECONDS = _get_env_int(
    "HELIX_REQUEST_TIMEOUT_SECONDS", 10
)  # Per-request timeout for profile lookups
