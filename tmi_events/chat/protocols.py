"""Protocol definitions for the collaborators the router talks to.

The transport, the profile lookup service and the event bus live outside
this package; these protocols are the narrow seams they are consumed
through.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Protocol

from ..events import ChatEvent
from ..models import Channel, User


class IdentityResolver(Protocol):
    """Resolves logins and ids to profiles.

    A miss is reported as None, never as an exception.
    """

    async def get_user_id_by_login(self, login: str) -> str | None:
        """Return the numeric id (as a string) of a login."""
        ...

    async def get_user(self, user_id: str) -> User | None:
        """Return the profile of a user id."""
        ...

    async def get_user_by_login(self, login: str) -> User | None:
        """Return the profile of a login."""
        ...

    async def get_channel(self, channel_id: str) -> Channel | None:
        """Return the channel profile of a broadcaster id."""
        ...


class EventDispatcher(Protocol):
    """Fire-and-forget delivery of domain events to registered consumers."""

    def dispatch(self, event: ChatEvent) -> Awaitable[None] | None:
        """Deliver one event; coroutine implementations are awaited."""
        ...


class RawLineSender(Protocol):
    """Outbound write on the active transport."""

    async def send_raw_line(self, line: str) -> None:
        """Send one protocol line (without CRLF)."""
        ...
