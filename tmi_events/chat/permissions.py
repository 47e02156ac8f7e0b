from __future__ import annotations

from collections.abc import Mapping

from ..models import CommandPermission

_BADGE_PERMISSIONS: dict[str, tuple[CommandPermission, ...]] = {
    "broadcaster/1": (CommandPermission.BROADCASTER, CommandPermission.MODERATOR),
    "premium/1": (CommandPermission.PRIME_TURBO,),
    "moderator/1": (CommandPermission.MODERATOR,),
}


def derive_permissions(tag_map: Mapping[str, str]) -> frozenset[CommandPermission]:
    """Build the capability set of a chatter from badges, turbo and subscriber tags.

    All rules are additive; EVERYONE is always granted.
    """
    permissions = {CommandPermission.EVERYONE}
    badges = tag_map.get("badges")
    if badges:
        for badge in badges.split(","):
            permissions.update(_BADGE_PERMISSIONS.get(badge, ()))
    if tag_map.get("turbo") == "1":
        permissions.add(CommandPermission.PRIME_TURBO)
    if tag_map.get("subscriber") == "1":
        permissions.add(CommandPermission.SUBSCRIBER)
    return frozenset(permissions)


WHISPER_PERMISSIONS = frozenset({CommandPermission.EVERYONE})
