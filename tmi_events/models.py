"""Domain models shared by the router and the emitted events."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, auto


class CommandPermission(Enum):
    EVERYONE = auto()
    SUBSCRIBER = auto()
    PRIME_TURBO = auto()
    MODERATOR = auto()
    BROADCASTER = auto()


class SubPlan(Enum):
    PRIME = "Prime"
    TIER_1 = "1000"
    TIER_2 = "2000"
    TIER_3 = "3000"

    @classmethod
    def from_code(cls, code: str | None) -> SubPlan | None:
        """Map a msg-param-sub-plan value onto a plan; unknown codes give None."""
        if code is None:
            return None
        try:
            return cls(code)
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class Channel:
    id: str
    name: str
    display_name: str | None = None


@dataclass(frozen=True, slots=True)
class User:
    id: str
    name: str
    display_name: str | None = None


@dataclass(frozen=True, slots=True)
class Subscription:
    """A (re)subscription announced in a channel.

    ``message`` is only kept for streaks above one; a first subscription
    cannot carry a message.
    """

    user: User
    streak: int
    is_prime: bool
    sub_plan: SubPlan | None
    message: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class Cheer:
    user: User
    bits: int
    message: str
