"""Command routing: raw TMI lines in, domain events out.

The router is the single entry point for inbound lines. It answers keep-alive
pings, classifies every other line by command verb and ``msg-id`` tag,
resolves identities through the injected resolver and hands finished events
to the injected dispatcher. One line failing never affects the next one.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass

from ..chat.dedup import DedupResult, SubscriptionDedupCache
from ..chat.permissions import WHISPER_PERMISSIONS, derive_permissions
from ..chat.protocols import EventDispatcher, IdentityResolver, RawLineSender
from ..chat.room_state import RoomStateTracker
from ..config import RouterSettings
from ..constants import LEGACY_NOTIFY_LOGIN, LOGIN_FAILED_NOTICE
from ..errors.handling import log_error
from ..errors.internal import (
    AuthenticationFailedError,
    IdentityResolutionError,
    MalformedLineError,
    TranslatorError,
)
from ..events import (
    ChannelMessageEvent,
    ChatEvent,
    CheerEvent,
    HostOffEvent,
    HostOnEvent,
    PrivateMessageEvent,
    RoomStateChangedEvent,
    SubscriptionEvent,
    UserBanEvent,
    UserTimeoutEvent,
)
from ..logs.logger import logger
from ..models import Channel, Cheer, SubPlan, Subscription, User
from .extractors import match_legacy_subscription, match_whisper
from .parser import RawLine, build_tag_map, parse_line

ROUTED_COMMANDS = frozenset(
    {
        "WHISPER",
        "USERNOTICE",
        "PRIVMSG",
        "NOTICE",
        "CLEARCHAT",
        "HOSTTARGET",
        "ROOMSTATE",
    }
)

RESUB_REQUIRED_TAGS = ("msg-id", "msg-param-months", "display-name", "system-msg")

# NOTICE msg-ids that are recognized but do not produce an event yet.
RESERVED_NOTICE_IDS = frozenset(
    {
        "emote_only_on",
        "emote_only_off",
        "msg_channel_suspended",
        "timeout_success",
        "ban_success",
        "unban_success",
    }
)

DEFAULT_SUB_PLAN_CODE = "1000"

TagMap = Mapping[str, str]
_Branch = Callable[[RawLine, Channel, TagMap], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class ChannelMessage:
    """Structured chat message as delivered by the transport library.

    Attributes:
        channel: Channel name, with or without the leading '#'.
        nick: Sender nick.
        message: Message body.
        raw_line: The original tag-bearing line the message was parsed from.
    """

    channel: str
    nick: str
    message: str
    raw_line: str


def _require_tag(tag_map: TagMap, name: str) -> str:
    value = tag_map.get(name)
    if value is None:
        raise MalformedLineError(f"Missing tag '{name}'", data={"tag": name})
    return value


def _parse_int(value: str, name: str, minimum: int = 0) -> int:
    try:
        number = int(value)
    except ValueError as e:
        raise MalformedLineError(
            f"Tag '{name}' is not an integer", data={"tag": name, "value": value}
        ) from e
    if number < minimum:
        raise MalformedLineError(
            f"Tag '{name}' below {minimum}", data={"tag": name, "value": value}
        )
    return number


class CommandRouter:
    """Translate TMI lines into domain events.

    Args:
        resolver: Identity lookups; misses come back as None.
        dispatcher: Receives every emitted event.
        sender: Transport write used for PONG replies.
        settings: Router tunables, defaults when omitted.
        dedup: Subscription dedup cache; built from settings when omitted.
        room_states: Room state tracker; a fresh one when omitted.

    Example:
        >>> router = CommandRouter(resolver, dispatcher, connection)
        >>> await router.handle_line("PING :tmi.twitch.tv")
    """

    def __init__(
        self,
        resolver: IdentityResolver,
        dispatcher: EventDispatcher,
        sender: RawLineSender,
        *,
        settings: RouterSettings | None = None,
        dedup: SubscriptionDedupCache | None = None,
        room_states: RoomStateTracker | None = None,
    ) -> None:
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.sender = sender
        self.settings = settings or RouterSettings()
        self.dedup = dedup or SubscriptionDedupCache(
            ttl_seconds=self.settings.dedup_ttl_seconds
        )
        self.room_states = room_states or RoomStateTracker()
        self._branches: dict[str, _Branch] = {
            "WHISPER": self._handle_whisper,
            "PRIVMSG": self._handle_privmsg,
            "USERNOTICE": self._handle_usernotice,
            "NOTICE": self._handle_notice,
            "ROOMSTATE": self._handle_roomstate,
        }

    # ------------------------------------------------------------------ lines
    async def handle_line(self, raw_line: str) -> None:
        """Process one inbound protocol line.

        Raises:
            AuthenticationFailedError: The server rejected the login. This is
                the only exception leaving the router; everything else is
                logged and the line dropped.
        """
        line = raw_line.rstrip("\r\n")
        if not line.strip():
            return

        parsed = parse_line(line)
        if line == LOGIN_FAILED_NOTICE:
            logger.log_event("router", "login_failed", level=logging.ERROR)
            raise AuthenticationFailedError("Login authentication failed")

        if parsed.command != "PING" and parsed.command not in ROUTED_COMMANDS:
            return

        try:
            if parsed.command == "PING":
                await self._handle_ping(parsed)
            else:
                await self._route(parsed)
        except TranslatorError as e:
            log_error(
                "Dropped line",
                e,
                context={"command": parsed.command},
                level=logging.WARNING,
            )
        except Exception as e:  # noqa: BLE001
            log_error(
                "Unexpected error while handling line",
                e,
                context={"command": parsed.command, "raw": parsed.raw},
            )

    async def _handle_ping(self, parsed: RawLine) -> None:
        server = parsed.param(0) or self.settings.pong_server
        await self.sender.send_raw_line(f"PONG :{server}")
        logger.log_event("router", "pong", level=logging.DEBUG, server=server)

    async def _route(self, parsed: RawLine) -> None:
        channel_param = parsed.param(0)
        if not channel_param:
            raise MalformedLineError(
                "Line carries no channel parameter", data={"command": parsed.command}
            )
        channel = await self._resolve_channel(channel_param)
        tag_map = build_tag_map(parsed.tags)

        if "ban-reason" in tag_map:
            await self._handle_moderation(channel, tag_map)

        branch = self._branches.get(parsed.command or "")
        if branch is not None:
            await branch(parsed, channel, tag_map)

    # --------------------------------------------------------------- branches
    async def _handle_moderation(self, channel: Channel, tag_map: TagMap) -> None:
        reason = tag_map["ban-reason"]
        target_id = tag_map.get("target-user-id")
        target = await self.resolver.get_user(target_id) if target_id else None
        if target is None:
            logger.log_event(
                "router",
                "moderation_target_unknown",
                level=logging.DEBUG,
                channel=channel.name,
                target_user_id=target_id,
            )
            return

        if "ban-duration" in tag_map:
            duration = _parse_int(tag_map["ban-duration"], "ban-duration")
            await self._dispatch(
                UserTimeoutEvent(
                    channel=channel, user=target, duration=duration, reason=reason
                )
            )
        else:
            await self._dispatch(UserBanEvent(channel=channel, user=target, reason=reason))

    async def _handle_whisper(
        self, parsed: RawLine, channel: Channel, tag_map: TagMap
    ) -> None:
        match = match_whisper(parsed.raw)
        if match is None:
            return

        sender = await self._require_user(_require_tag(tag_map, "user-id"))
        recipient = await self.resolver.get_user_by_login(match.recipient)
        if recipient is None:
            raise IdentityResolutionError(
                "Unknown whisper recipient", data={"login": match.recipient}
            )
        await self._dispatch(
            PrivateMessageEvent(
                user=sender,
                recipient=recipient,
                message=match.message,
                permissions=WHISPER_PERMISSIONS,
            )
        )

    async def _handle_privmsg(
        self, parsed: RawLine, channel: Channel, tag_map: TagMap
    ) -> None:
        if parsed.nick == LEGACY_NOTIFY_LOGIN:
            legacy = match_legacy_subscription(parsed.raw)
            if legacy is not None:
                user = await self.resolver.get_user_by_login(legacy.username)
                if user is None:
                    raise IdentityResolutionError(
                        "Unknown subscriber", data={"login": legacy.username}
                    )
                await self.on_subscription(
                    user,
                    channel,
                    streak=legacy.streak,
                    is_prime=legacy.prime,
                    message=None,
                    sub_plan_code=legacy.sub_plan_code,
                )
                return

        if "bits" in tag_map:
            bits = _parse_int(tag_map["bits"], "bits")
            user = await self._require_user(_require_tag(tag_map, "user-id"))
            await self.on_cheer(user, channel, bits, parsed.param(1) or "")

    async def _handle_usernotice(
        self, parsed: RawLine, channel: Channel, tag_map: TagMap
    ) -> None:
        if any(name not in tag_map for name in RESUB_REQUIRED_TAGS):
            return
        msg_id = tag_map["msg-id"]
        months = (
            _parse_int(tag_map["msg-param-months"], "msg-param-months")
            if msg_id == "resub"
            else 0
        )
        # First-month subs (months <= 1) are intentionally not emitted here.
        if msg_id != "resub" or months <= 1:
            logger.log_event(
                "router",
                "usernotice_skipped",
                level=logging.DEBUG,
                channel=channel.name,
                msg_id=msg_id,
                months=months,
            )
            return

        user = await self._require_user(_require_tag(tag_map, "user-id"))
        await self.on_subscription(
            user,
            channel,
            streak=months,
            is_prime="twitch prime" in tag_map["system-msg"].lower(),
            message=parsed.param(1),
            sub_plan_code=tag_map.get("msg-param-sub-plan", DEFAULT_SUB_PLAN_CODE),
        )

    async def _handle_notice(
        self, parsed: RawLine, channel: Channel, tag_map: TagMap
    ) -> None:
        msg_id = tag_map.get("msg-id")
        if msg_id is None:
            logger.log_event(
                "router", "notice_without_msg_id", level=logging.DEBUG, channel=channel.name
            )
            return

        if msg_id == "host_on":
            # TODO: read the hosted channel from the notice text once host_on
            # semantics are confirmed; the host is reported as its own target.
            await self._dispatch(HostOnEvent(channel=channel, target_channel=channel))
        elif msg_id == "host_off":
            await self._dispatch(HostOffEvent(channel=channel))
        elif msg_id in RESERVED_NOTICE_IDS:
            logger.log_event(
                "router",
                "notice_reserved",
                level=logging.DEBUG,
                channel=channel.name,
                msg_id=msg_id,
            )
        else:
            logger.log_event(
                "router",
                "notice_unhandled",
                level=logging.DEBUG,
                channel=channel.name,
                msg_id=msg_id,
            )

    async def _handle_roomstate(
        self, parsed: RawLine, channel: Channel, tag_map: TagMap
    ) -> None:
        change = self.room_states.apply(channel.id, tag_map)
        if change is None:
            return
        logger.log_event(
            "room_state",
            "changed",
            level=logging.DEBUG,
            channel=channel.name,
            changed=",".join(sorted(change.changed)),
        )
        if self.settings.emit_room_state_events:
            await self._dispatch(
                RoomStateChangedEvent(
                    channel=channel, state=change.current, changed=change.changed
                )
            )

    # ---------------------------------------------------------- chat messages
    async def handle_channel_message(self, message: ChannelMessage) -> None:
        """Turn a transport-level chat message into a ChannelMessageEvent.

        The user record is built from the tags and nick directly; messages
        without a ``user-id`` tag are dropped.
        """
        try:
            tag_map = build_tag_map(parse_line(message.raw_line).tags)
            user_id = tag_map.get("user-id")
            if not user_id:
                logger.log_event(
                    "router", "message_without_user_id", level=logging.DEBUG
                )
                return

            channel = await self._resolve_channel(message.channel)
            user = User(
                id=user_id,
                name=message.nick.lower(),
                display_name=tag_map.get("display-name") or message.nick,
            )
            logger.log_event(
                "chat",
                "message",
                level=logging.DEBUG,
                channel=channel.name,
                author=user.name,
                chat_message=message.message,
            )
            await self._dispatch(
                ChannelMessageEvent(
                    channel=channel,
                    user=user,
                    message=message.message,
                    permissions=derive_permissions(tag_map),
                )
            )
        except TranslatorError as e:
            log_error("Dropped channel message", e, level=logging.WARNING)
        except Exception as e:  # noqa: BLE001
            log_error(
                "Unexpected error while handling channel message",
                e,
                context={"channel": message.channel},
            )

    # -------------------------------------------------------------- pipelines
    async def on_subscription(
        self,
        user: User,
        channel: Channel,
        *,
        streak: int,
        is_prime: bool,
        message: str | None,
        sub_plan_code: str,
    ) -> None:
        """Build, deduplicate and dispatch a subscription."""
        if streak < 1:
            raise MalformedLineError("Subscription streak below 1", data={"streak": streak})
        subscription = Subscription(
            user=user,
            streak=streak,
            is_prime=is_prime,
            sub_plan=SubPlan.from_code(sub_plan_code),
            # A first subscription cannot carry a message.
            message=(message or None) if streak > 1 else None,
        )
        if self.dedup.check_and_mark((user.id, streak)) is DedupResult.DUPLICATE:
            logger.log_event(
                "subscription",
                "duplicate",
                level=logging.DEBUG,
                channel=channel.name,
                user_id=user.id,
                streak=streak,
            )
            return
        logger.log_event(
            "subscription",
            "new",
            channel=channel.name,
            user_name=user.name,
            streak=streak,
        )
        await self._dispatch(SubscriptionEvent(channel=channel, subscription=subscription))

    async def on_cheer(self, user: User, channel: Channel, bits: int, message: str) -> None:
        if bits < 0:
            raise MalformedLineError("Negative bit count", data={"bits": bits})
        logger.log_event(
            "cheer", "new", channel=channel.name, user_name=user.name, bits=bits
        )
        await self._dispatch(
            CheerEvent(channel=channel, cheer=Cheer(user=user, bits=bits, message=message))
        )

    # ---------------------------------------------------------------- helpers
    async def _resolve_channel(self, channel_param: str) -> Channel:
        login = channel_param.lstrip(self.settings.channel_prefix).lower()
        channel_id = await self.resolver.get_user_id_by_login(login)
        if channel_id is None:
            raise IdentityResolutionError("Unknown channel", data={"channel": login})
        channel = await self.resolver.get_channel(channel_id)
        if channel is None:
            raise IdentityResolutionError(
                "Channel profile unavailable",
                data={"channel": login, "channel_id": channel_id},
            )
        return channel

    async def _require_user(self, user_id: str) -> User:
        user = await self.resolver.get_user(user_id)
        if user is None:
            raise IdentityResolutionError("Unknown user", data={"user_id": user_id})
        return user

    async def _dispatch(self, event: ChatEvent) -> None:
        logger.log_event(
            "router", "dispatch", level=logging.DEBUG, event=type(event).__name__
        )
        result = self.dispatcher.dispatch(event)
        if inspect.isawaitable(result):
            await result
