"""Per-channel chat mode flags driven by ROOMSTATE tag deltas."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, replace

from ..logs.logger import logger

# tag name -> RoomState field
ROOM_STATE_TAGS: dict[str, str] = {
    "subs-only": "subs_only",
    "slow": "slow_mode_seconds",
    "r9k": "r9k",
    "emote-only": "emote_only",
    "followers-only": "followers_only",
}


@dataclass(frozen=True, slots=True)
class RoomState:
    subs_only: bool = False
    r9k: bool = False
    emote_only: bool = False
    followers_only: bool = False
    slow_mode_seconds: int = 0

    @property
    def slow_mode(self) -> bool:
        return self.slow_mode_seconds > 0


@dataclass(frozen=True, slots=True)
class RoomStateChange:
    previous: RoomState
    current: RoomState
    changed: frozenset[str]


class RoomStateTracker:
    """Holds the RoomState of every channel seen in a ROOMSTATE line.

    Only fields whose tag is present are touched; "0" turns a mode off and
    any other value turns it on. Updates for one channel are serialized.
    """

    def __init__(self) -> None:
        self._states: dict[str, RoomState] = {}
        self._channel_locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, channel_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._channel_locks.get(channel_id)
            if lock is None:
                lock = self._channel_locks[channel_id] = threading.Lock()
            return lock

    def get(self, channel_id: str) -> RoomState:
        return self._states.get(channel_id, RoomState())

    def forget(self, channel_id: str) -> None:
        """Drop the stored state of a channel.

        The channel lock itself is kept so an update in flight and the next
        one still serialize on the same lock.
        """
        with self._lock_for(channel_id):
            self._states.pop(channel_id, None)

    def apply(
        self, channel_id: str, tag_map: Mapping[str, str]
    ) -> RoomStateChange | None:
        """Apply the mode tags of one ROOMSTATE line.

        Returns:
            The before/after snapshots and the changed field names, or None
            when the line changed nothing.
        """
        updates: dict[str, object] = {}
        for tag, field_name in ROOM_STATE_TAGS.items():
            if tag not in tag_map:
                continue
            value = tag_map[tag]
            if field_name == "slow_mode_seconds":
                try:
                    updates[field_name] = max(int(value), 0)
                except ValueError:
                    logger.log_event(
                        "room_state",
                        "invalid_value",
                        level=logging.WARNING,
                        channel_id=channel_id,
                        tag=tag,
                        value=value,
                    )
            else:
                updates[field_name] = value != "0"
        if not updates:
            return None

        with self._lock_for(channel_id):
            previous = self._states.get(channel_id, RoomState())
            current = replace(previous, **updates)
            self._states[channel_id] = current
        changed = frozenset(
            name
            for name in updates
            if getattr(previous, name) != getattr(current, name)
        )
        if not changed:
            return None
        return RoomStateChange(previous=previous, current=current, changed=changed)
