"""IRC line parsing and tag map construction."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

# IRCv3 tag value escapes.
_TAG_ESCAPES = {
    ":": ";",
    "s": " ",
    "\\": "\\",
    "r": "\r",
    "n": "\n",
}


@dataclass(frozen=True, slots=True)
class MessageTag:
    name: str
    value: str | None = None


@dataclass(frozen=True, slots=True)
class RawLine:
    raw: str
    tags: tuple[MessageTag, ...]
    prefix: str | None
    command: str | None
    params: tuple[str, ...]

    @property
    def nick(self) -> str | None:
        """Nick part of a ``nick!user@host`` prefix."""
        if not self.prefix:
            return None
        return self.prefix.split("!", 1)[0]

    def param(self, index: int) -> str | None:
        if 0 <= index < len(self.params):
            return self.params[index]
        return None


def parse_line(raw_line: str) -> RawLine:
    """Split ``@tags :prefix COMMAND p1 p2 :trailing`` into its parts.

    Never raises: a line the parser cannot make sense of comes back with
    ``command=None`` so the caller can drop it.
    """
    original = raw_line
    tags: tuple[MessageTag, ...] = ()
    prefix: str | None = None

    if raw_line.startswith("@"):
        if " " not in raw_line:
            return RawLine(original, _parse_tags(raw_line[1:]), None, None, ())
        tags_part, raw_line = raw_line.split(" ", 1)
        tags = _parse_tags(tags_part[1:])
        raw_line = raw_line.lstrip(" ")

    if raw_line.startswith(":"):
        remainder = raw_line[1:]
        if " " not in remainder:  # malformed; prefix only
            return RawLine(original, tags, remainder or None, None, ())
        prefix, raw_line = remainder.split(" ", 1)

    trailing: str | None = None
    if raw_line.startswith(":"):
        trailing = raw_line[1:]
        raw_line = ""
    elif " :" in raw_line:
        raw_line, trailing = raw_line.split(" :", 1)

    parts = raw_line.split()
    if not parts:
        return RawLine(original, tags, prefix, None, ())
    params = list(parts[1:])
    if trailing is not None:
        params.append(trailing)
    return RawLine(original, tags, prefix, parts[0].upper(), tuple(params))


def _parse_tags(raw_tags: str) -> tuple[MessageTag, ...]:
    tags: list[MessageTag] = []
    for tag in raw_tags.split(";"):
        if not tag:
            continue
        if "=" in tag:
            name, value = tag.split("=", 1)
            tags.append(MessageTag(name, unescape_tag_value(value)))
        else:
            tags.append(MessageTag(tag))
    return tuple(tags)


def unescape_tag_value(value: str) -> str:
    if "\\" not in value:
        return value
    out: list[str] = []
    chars = iter(value)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, None)
        if nxt is None:  # trailing lone backslash is dropped
            break
        out.append(_TAG_ESCAPES.get(nxt, nxt))
    return "".join(out)


def build_tag_map(tags: Iterable[MessageTag]) -> dict[str, str]:
    """Flatten tags into a mapping, omitting tags without a value.

    Absence and "no value" collapse to absence, so every lookup downstream
    is a plain membership test.
    """
    return {tag.name: tag.value for tag in tags if tag.value}


def strip_tags(raw_line: str) -> str:
    """Return the line without its leading ``@...`` tag block."""
    if raw_line.startswith("@") and " " in raw_line:
        return raw_line.split(" ", 1)[1].lstrip(" ")
    return raw_line

