from __future__ import annotations

from typing import Any

import pytest

from tests.fixtures import tmi_lines
from tests.fixtures.chat_fakes import AsyncRecordingDispatcher, FakeResolver
from tmi_events.config import RouterSettings
from tmi_events.errors.internal import AuthenticationFailedError
from tmi_events.events import (
    CheerEvent,
    HostOffEvent,
    HostOnEvent,
    PrivateMessageEvent,
    RoomStateChangedEvent,
    SubscriptionEvent,
    UserBanEvent,
    UserTimeoutEvent,
)
from tmi_events.irc.router import CommandRouter
from tmi_events.logging_config import error_aggregator
from tmi_events.models import CommandPermission, SubPlan


async def test_ping_answers_with_single_pong(router, sender, dispatcher):
    await router.handle_line(tmi_lines.PING)
    assert sender.sent == ["PONG :tmi.twitch.tv"]
    assert dispatcher.events == []


async def test_ping_echoes_server_token(router, sender):
    await router.handle_line("PING :irc.example.net\r\n")
    assert sender.sent == ["PONG :irc.example.net"]


async def test_privmsg_mentioning_ping_is_not_answered(router, sender):
    await router.handle_line(
        "@user-id=2001 :alice!alice@alice.tmi.twitch.tv PRIVMSG #somechan :PING :tmi.twitch.tv"
    )
    assert sender.sent == []


async def test_login_failure_is_terminal(router, dispatcher, resolver):
    with pytest.raises(AuthenticationFailedError):
        await router.handle_line(tmi_lines.LOGIN_FAILED)
    assert dispatcher.events == []
    assert resolver.calls == []


async def test_unknown_channel_is_dropped(router, dispatcher):
    await router.handle_line(tmi_lines.TIMEOUT.replace("#somechan", "#nobody"))
    assert dispatcher.events == []
    assert error_aggregator.get_error_summary()["identity"]["total_count"] == 1


async def test_unrouted_commands_are_ignored(router, dispatcher, resolver):
    await router.handle_line(":tmi.twitch.tv 001 bot :Welcome, GLHF!")
    await router.handle_line(":bot!bot@bot.tmi.twitch.tv JOIN #somechan")
    assert dispatcher.events == []
    assert resolver.calls == []


async def test_clearchat_with_duration_emits_timeout(router, dispatcher):
    await router.handle_line(tmi_lines.TIMEOUT)
    assert len(dispatcher.events) == 1
    event = dispatcher.events[0]
    assert isinstance(event, UserTimeoutEvent)
    assert event.duration == 600
    assert event.reason == "spamming links"
    assert event.user == tmi_lines.TARGET
    assert event.channel.name == "somechan"


async def test_clearchat_without_duration_emits_ban(router, dispatcher):
    await router.handle_line(tmi_lines.BAN)
    assert len(dispatcher.events) == 1
    event = dispatcher.events[0]
    assert isinstance(event, UserBanEvent)
    assert event.reason == "being rude"
    assert event.user == tmi_lines.TARGET


async def test_moderation_with_unknown_target_is_soft_skip(router, dispatcher):
    await router.handle_line(tmi_lines.BAN.replace("target-user-id=3001", "target-user-id=999"))
    await router.handle_line(tmi_lines.BAN.replace(";target-user-id=3001", ""))
    assert dispatcher.events == []
    assert error_aggregator.get_error_summary() == {}


async def test_whisper_emits_private_message(router, dispatcher):
    await router.handle_line(tmi_lines.WHISPER)
    [event] = dispatcher.events
    assert isinstance(event, PrivateMessageEvent)
    assert event.user == tmi_lines.ALICE
    assert event.recipient == tmi_lines.BOB
    assert event.message == "hello there"
    assert event.permissions == {CommandPermission.EVERYONE}


async def test_whisper_with_unknown_sender_is_dropped(router, dispatcher):
    await router.handle_line(tmi_lines.WHISPER.replace("user-id=2001", "user-id=777"))
    assert dispatcher.events == []


async def test_legacy_prime_subscription(router, dispatcher):
    await router.handle_line(tmi_lines.LEGACY_PRIME)
    [event] = dispatcher.events
    assert isinstance(event, SubscriptionEvent)
    sub = event.subscription
    assert sub.user == tmi_lines.ALICE
    assert sub.is_prime is True
    assert sub.streak == 1
    assert sub.sub_plan is SubPlan.TIER_1
    assert sub.message is None
    assert event.channel.id == tmi_lines.CHANNEL_USER.id


async def test_legacy_tier_two_subscription(router, dispatcher):
    await router.handle_line(tmi_lines.LEGACY_TIER_2)
    [event] = dispatcher.events
    assert event.subscription.sub_plan is SubPlan.TIER_2
    assert event.subscription.is_prime is False


async def test_cheer(router, dispatcher):
    await router.handle_line(tmi_lines.CHEER)
    [event] = dispatcher.events
    assert isinstance(event, CheerEvent)
    assert event.cheer.bits == 100
    assert event.cheer.user == tmi_lines.ALICE
    assert event.cheer.message == "cheer100 great stream"


async def test_cheers_are_not_deduplicated(router, dispatcher):
    await router.handle_line(tmi_lines.CHEER)
    await router.handle_line(tmi_lines.CHEER)
    assert len(dispatcher.of_type(CheerEvent)) == 2


async def test_cheer_with_invalid_bits_is_dropped(router, dispatcher):
    await router.handle_line(tmi_lines.CHEER.replace("bits=100", "bits=lots"))
    assert dispatcher.events == []
    assert error_aggregator.get_error_summary()["malformed"]["total_count"] == 1


async def test_plain_privmsg_emits_nothing(router, dispatcher):
    await router.handle_line(tmi_lines.CHANNEL_MESSAGE)
    assert dispatcher.events == []


async def test_resub(router, dispatcher):
    await router.handle_line(tmi_lines.RESUB)
    [event] = dispatcher.events
    sub = event.subscription
    assert sub.streak == 6
    assert sub.is_prime is False
    assert sub.sub_plan is SubPlan.TIER_2
    assert sub.message == "still here"


async def test_prime_resub_without_message(router, dispatcher):
    await router.handle_line(tmi_lines.RESUB_PRIME)
    [event] = dispatcher.events
    sub = event.subscription
    assert sub.streak == 3
    assert sub.is_prime is True
    assert sub.sub_plan is SubPlan.PRIME
    assert sub.message is None


async def test_resub_defaults_to_tier_one(router, dispatcher):
    await router.handle_line(tmi_lines.RESUB.replace("msg-param-sub-plan=2000;", ""))
    [event] = dispatcher.events
    assert event.subscription.sub_plan is SubPlan.TIER_1


async def test_first_month_usernotice_is_not_emitted(router, dispatcher):
    await router.handle_line(tmi_lines.FIRST_SUB)
    await router.handle_line(tmi_lines.RESUB.replace("msg-param-months=6", "msg-param-months=1"))
    assert dispatcher.events == []


async def test_usernotice_missing_required_tags(router, dispatcher):
    await router.handle_line(tmi_lines.RESUB.replace("display-name=Alice;", ""))
    assert dispatcher.events == []


async def test_duplicate_resub_within_window_emits_once(router, dispatcher, clock):
    await router.handle_line(tmi_lines.RESUB)
    clock.advance(120)
    await router.handle_line(tmi_lines.RESUB)
    assert len(dispatcher.of_type(SubscriptionEvent)) == 1
    clock.advance(181)
    await router.handle_line(tmi_lines.RESUB)
    assert len(dispatcher.of_type(SubscriptionEvent)) == 2


async def test_subscription_pipeline_idempotent(router, dispatcher):
    channel = await router._resolve_channel("#somechan")
    for _ in range(2):
        await router.on_subscription(
            tmi_lines.ALICE,
            channel,
            streak=4,
            is_prime=False,
            message="hey",
            sub_plan_code="1000",
        )
    [event] = dispatcher.events
    assert event.subscription.message == "hey"


async def test_first_subscription_drops_message(router, dispatcher):
    channel = await router._resolve_channel("somechan")
    await router.on_subscription(
        tmi_lines.ALICE, channel, streak=1, is_prime=False, message="hi", sub_plan_code="9999"
    )
    [event] = dispatcher.events
    assert event.subscription.message is None
    assert event.subscription.sub_plan is None


async def test_host_on_reports_channel_as_target(router, dispatcher):
    await router.handle_line(tmi_lines.HOST_ON)
    [event] = dispatcher.events
    assert isinstance(event, HostOnEvent)
    assert event.channel == event.target_channel


async def test_host_off(router, dispatcher):
    await router.handle_line(tmi_lines.HOST_OFF)
    [event] = dispatcher.events
    assert isinstance(event, HostOffEvent)
    assert event.channel.name == "somechan"


@pytest.mark.parametrize(
    "msg_id", ["emote_only_on", "ban_success", "unban_success", "something_new"]
)
async def test_other_notices_emit_nothing(router, dispatcher, msg_id):
    await router.handle_line(tmi_lines.HOST_OFF.replace("host_off", msg_id))
    assert dispatcher.events == []


async def test_notice_without_msg_id_is_dropped_quietly(router, dispatcher):
    await router.handle_line(tmi_lines.NOTICE_NO_MSG_ID)
    assert dispatcher.events == []
    assert error_aggregator.get_error_summary() == {}


async def test_roomstate_slow_updates_only_slow_mode(router, dispatcher):
    await router.handle_line(tmi_lines.ROOMSTATE_SUBS_ON)
    await router.handle_line(tmi_lines.ROOMSTATE_SLOW)
    state = router.room_states.get(tmi_lines.CHANNEL_USER.id)
    assert state.slow_mode_seconds == 30
    assert state.subs_only is True
    assert state.r9k is False
    events = dispatcher.of_type(RoomStateChangedEvent)
    assert [e.changed for e in events] == [{"subs_only"}, {"slow_mode_seconds"}]


async def test_roomstate_initial_snapshot_without_changes(router, dispatcher):
    await router.handle_line(tmi_lines.ROOMSTATE_FULL)
    assert dispatcher.events == []


async def test_roomstate_emission_can_be_disabled(resolver, dispatcher, sender):
    router = CommandRouter(
        resolver, dispatcher, sender, settings=RouterSettings(emit_room_state_events=False)
    )
    await router.handle_line(tmi_lines.ROOMSTATE_SLOW)
    assert dispatcher.events == []
    assert router.room_states.get(tmi_lines.CHANNEL_USER.id).slow_mode_seconds == 30


async def test_async_dispatcher_is_awaited(resolver, sender):
    dispatcher = AsyncRecordingDispatcher()
    router = CommandRouter(resolver, dispatcher, sender)
    await router.handle_line(tmi_lines.BAN)
    assert len(dispatcher.events) == 1


async def test_failing_line_does_not_block_next_line(resolver, sender):
    class ExplodingOnce:
        def __init__(self) -> None:
            self.events: list[Any] = []
            self.failed = False

        def dispatch(self, event: Any) -> None:
            if not self.failed:
                self.failed = True
                raise RuntimeError("consumer blew up")
            self.events.append(event)

    dispatcher = ExplodingOnce()
    router = CommandRouter(resolver, dispatcher, sender)
    await router.handle_line(tmi_lines.BAN)
    await router.handle_line(tmi_lines.TIMEOUT)
    assert [type(e) for e in dispatcher.events] == [UserTimeoutEvent]
    assert error_aggregator.get_error_summary()["unknown"]["total_count"] == 1


async def test_channel_lookup_happens_once_per_line(router, resolver):
    await router.handle_line(tmi_lines.TIMEOUT)
    assert [c for c in resolver.calls if c[0] == "id_by_login"] == [
        ("id_by_login", "somechan")
    ]


async def test_failed_pong_write_does_not_escape(resolver, dispatcher):
    class BrokenSender:
        async def send_raw_line(self, line: str) -> None:
            raise ConnectionResetError("socket closed")

    router = CommandRouter(resolver, dispatcher, BrokenSender())
    await router.handle_line(tmi_lines.PING)
    await router.handle_line(tmi_lines.BAN)
    assert [type(e) for e in dispatcher.events] == [UserBanEvent]
    assert error_aggregator.get_error_summary()["network"]["total_count"] == 1


async def test_whisper_with_unresolvable_recipient_is_dropped(dispatcher, sender):
    class NoLoginLookups(FakeResolver):
        async def get_user_by_login(self, login: str):
            self.calls.append(("user_by_login", login))
            return None

    resolver = NoLoginLookups(
        [tmi_lines.CHANNEL_USER, tmi_lines.ALICE, tmi_lines.BOB, tmi_lines.TARGET]
    )
    router = CommandRouter(resolver, dispatcher, sender)
    await router.handle_line(tmi_lines.WHISPER)
    assert dispatcher.events == []
    assert ("user_by_login", "bobby") in resolver.calls
    last = error_aggregator.get_error_summary()["identity"]["last_occurrence"]
    assert last["context"]["login"] == "bobby"
