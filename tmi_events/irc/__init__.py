"""IRC subsystem package.

Line parsing, pattern extractors for untagged line shapes and the command
router that turns TMI lines into domain events.
"""

from .extractors import (  # noqa: F401
    LEGACY_SUBSCRIPTION_RULES,
    match_legacy_subscription,
    match_whisper,
)
from .parser import MessageTag, RawLine, build_tag_map, parse_line  # noqa: F401
from .router import ChannelMessage, CommandRouter  # noqa: F401

__all__ = [
    "LEGACY_SUBSCRIPTION_RULES",
    "ChannelMessage",
    "CommandRouter",
    "MessageTag",
    "RawLine",
    "build_tag_map",
    "match_legacy_subscription",
    "match_whisper",
    "parse_line",
]
