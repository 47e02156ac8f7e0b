"""Domain events handed to the external dispatcher.

Each event is a self-contained immutable record; no event references another.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from .chat.room_state import RoomState
from .models import Channel, Cheer, CommandPermission, Subscription, User


@dataclass(frozen=True, slots=True, kw_only=True)
class ChatEvent:
    fired_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True, kw_only=True)
class ChannelMessageEvent(ChatEvent):
    channel: Channel
    user: User
    message: str
    permissions: frozenset[CommandPermission]


@dataclass(frozen=True, slots=True, kw_only=True)
class PrivateMessageEvent(ChatEvent):
    user: User
    recipient: User
    message: str
    permissions: frozenset[CommandPermission]


@dataclass(frozen=True, slots=True, kw_only=True)
class SubscriptionEvent(ChatEvent):
    channel: Channel
    subscription: Subscription


@dataclass(frozen=True, slots=True, kw_only=True)
class CheerEvent(ChatEvent):
    channel: Channel
    cheer: Cheer


@dataclass(frozen=True, slots=True, kw_only=True)
class UserBanEvent(ChatEvent):
    channel: Channel
    user: User
    reason: str


@dataclass(frozen=True, slots=True, kw_only=True)
class UserTimeoutEvent(ChatEvent):
    channel: Channel
    user: User
    duration: int
    reason: str


@dataclass(frozen=True, slots=True, kw_only=True)
class HostOnEvent(ChatEvent):
    channel: Channel
    target_channel: Channel


@dataclass(frozen=True, slots=True, kw_only=True)
class HostOffEvent(ChatEvent):
    channel: Channel


@dataclass(frozen=True, slots=True, kw_only=True)
class RoomStateChangedEvent(ChatEvent):
    channel: Channel
    state: RoomState
    changed: frozenset[str]
