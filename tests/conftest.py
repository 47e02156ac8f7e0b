import pytest

from tests.fixtures.chat_fakes import FakeResolver, RecordingDispatcher, RecordingSender
from tests.fixtures.tmi_lines import ALICE, BOB, CHANNEL_USER, TARGET
from tmi_events.chat.dedup import SubscriptionDedupCache
from tmi_events.irc.router import CommandRouter


class ManualClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver([CHANNEL_USER, ALICE, BOB, TARGET])


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def router(resolver, dispatcher, sender, clock) -> CommandRouter:
    return CommandRouter(
        resolver,
        dispatcher,
        sender,
        dedup=SubscriptionDedupCache(ttl_seconds=300, clock=clock),
    )
