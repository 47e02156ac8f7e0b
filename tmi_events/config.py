from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from .constants import SUBSCRIPTION_DEDUP_TTL_SECONDS, TMI_SERVER_NAME


class RouterSettings(BaseModel):
    """Tunables for the command router.

    Attributes:
        dedup_ttl_seconds: Lifetime of a subscription dedup entry, counted
            from insertion.
        pong_server: Server token echoed back when the PING carries none.
        emit_room_state_events: Dispatch a RoomStateChangedEvent whenever a
            ROOMSTATE line changes at least one mode flag.
        channel_prefix: Character prepended to channel names on the wire.
    """

    dedup_ttl_seconds: float = Field(default=SUBSCRIPTION_DEDUP_TTL_SECONDS, gt=0)
    pong_server: str = TMI_SERVER_NAME
    emit_room_state_events: bool = True
    channel_prefix: str = Field(default="#", min_length=1, max_length=1)

    @field_validator("pong_server", mode="before")
    @classmethod
    def validate_server(cls, v: Any) -> str:
        """Strip whitespace and a leading ':' so the PONG line stays well-formed."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("pong_server cannot be empty")
        return v.strip().lstrip(":")
