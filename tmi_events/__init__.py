"""Translate Twitch chat (TMI) protocol lines into typed domain events."""

from .config import RouterSettings
from .irc.router import ChannelMessage, CommandRouter

__version__ = "1.0.0"

__all__ = ["ChannelMessage", "CommandRouter", "RouterSettings", "__version__"]
