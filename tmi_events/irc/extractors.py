"""Pattern matchers for line shapes that carry no structured tags.

Legacy subscription announcements were free-text PRIVMSGs sent by the
``twitchnotify`` service account; whispers are matched on the raw line so the
recipient and body can be read without relying on parameter splitting.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .parser import strip_tags

_LOGIN = r"[a-zA-Z0-9_]{4,25}"
_LEGACY_HEAD = (
    r"^:twitchnotify!twitchnotify@twitchnotify\.tmi\.twitch\.tv "
    rf"PRIVMSG #(?P<channel>{_LOGIN}) :(?P<username>{_LOGIN}) "
)


@dataclass(frozen=True, slots=True)
class LegacySubscriptionRule:
    pattern: re.Pattern[str]
    sub_plan_code: str
    prime: bool = False
    streak: int = 1


@dataclass(frozen=True, slots=True)
class LegacySubscriptionMatch:
    username: str
    channel: str
    sub_plan_code: str
    prime: bool
    streak: int


@dataclass(frozen=True, slots=True)
class WhisperMatch:
    recipient: str
    message: str


def _legacy(tail: str, sub_plan_code: str, prime: bool = False) -> LegacySubscriptionRule:
    return LegacySubscriptionRule(
        re.compile(_LEGACY_HEAD + tail + "$"), sub_plan_code, prime
    )


# Evaluated in order, first match wins.
LEGACY_SUBSCRIPTION_RULES: tuple[LegacySubscriptionRule, ...] = (
    _legacy(r"just subscribed with a \$4\.99 sub!?", "1000"),
    _legacy(r"just subscribed with a \$9\.99 sub!?", "2000"),
    _legacy(r"just subscribed with a \$24\.99 sub!?", "3000"),
    _legacy(r"just subscribed!", "1000"),
    _legacy(r"just subscribed with Twitch Prime!", "1000", prime=True),
)

WHISPER_PATTERN = re.compile(
    r"^(?:@\S* +)?:[^!\s]+![^@\s]+@\S+?\.tmi\.twitch\.tv WHISPER "
    r"(?P<recipient>[a-zA-Z0-9_]{1,25}) :(?P<message>.+)$"
)


def match_legacy_subscription(raw_line: str) -> LegacySubscriptionMatch | None:
    line = strip_tags(raw_line)
    for rule in LEGACY_SUBSCRIPTION_RULES:
        m = rule.pattern.match(line)
        if m:
            return LegacySubscriptionMatch(
                username=m.group("username"),
                channel=m.group("channel"),
                sub_plan_code=rule.sub_plan_code,
                prime=rule.prime,
                streak=rule.streak,
            )
    return None


def match_whisper(raw_line: str) -> WhisperMatch | None:
    m = WHISPER_PATTERN.match(raw_line)
    if not m:
        return None
    return WhisperMatch(recipient=m.group("recipient"), message=m.group("message"))
