"""Chat-level state and derivations: permissions, dedup, room state."""

from .dedup import DedupResult, SubscriptionDedupCache  # noqa: F401
from .permissions import derive_permissions  # noqa: F401
from .room_state import RoomState, RoomStateChange, RoomStateTracker  # noqa: F401

__all__ = [
    "DedupResult",
    "RoomState",
    "RoomStateChange",
    "RoomStateTracker",
    "SubscriptionDedupCache",
    "derive_permissions",
]
