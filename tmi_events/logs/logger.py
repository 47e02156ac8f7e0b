"""Structured event logger used across the translation layer."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

CHAT_PREFIX = "💬"


def _supports_color(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except Exception:  # pragma: no cover
        return False


def _debug_enabled() -> bool:
    return os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")


class SimpleFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: "\x1b[36m",
        logging.INFO: "\x1b[32m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[35m",
    }
    RESET = "\x1b[0m"

    def __init__(self) -> None:
        super().__init__()
        self.enable_color = _supports_color(sys.stdout)

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 (simple override)
        msg = record.getMessage()
        # 'CRITICAL' is the longest built-in level name.
        raw_level = record.levelname.ljust(8)
        if self.enable_color:
            color = self.LEVEL_COLORS.get(record.levelno, "")
            return f"{color}{raw_level}{self.RESET} {msg}"
        return f"{raw_level} {msg}"


class EventLogger:
    """Thin wrapper emitting `domain_action` events with templated text.

    Human readable text is looked up in the event catalog by
    ``(domain, action)`` and formatted with the keyword context. When no
    template exists the text is derived from the event name. With ``DEBUG``
    set, the context is appended as ``key=value`` pairs.
    """

    EVENT_NAME_WIDTH = 32
    PREFIX_WIDTH = 24

    def __init__(self, name: str = "tmi_events", log_file: str | None = None) -> None:
        self.logger = logging.getLogger(name)
        self.log_file = log_file
        self.logger.handlers.clear()
        self.logger.setLevel(logging.DEBUG if _debug_enabled() else logging.INFO)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(SimpleFormatter())
        self.logger.addHandler(console_handler)
        self._console_handler: logging.Handler | None = console_handler

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
                )
            )
            self.logger.addHandler(file_handler)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def detach_console(self) -> None:
        """Stop writing to stdout and leave output to the root handlers.

        Called once the application installs its own root handler, so each
        record is printed once.
        """
        if self._console_handler is not None:
            self.logger.removeHandler(self._console_handler)
            self._console_handler = None

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        human: str | None = None,
        *,
        exc_info: bool = False,
        **kwargs: object,
    ) -> None:
        event_name = f"{domain}_{action}".lower()
        derived = False
        if human is None:
            # Attribute lookup on the module so reloaded templates are seen.
            from . import event_catalog

            template = event_catalog.EVENT_TEMPLATES.get((domain, action))
            if template:
                try:
                    human = template.format(**kwargs)
                except (KeyError, IndexError, ValueError):
                    human = template
            else:
                human = f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}"
                derived = True
        if derived:
            kwargs.setdefault("derived", True)
        self._log(level, event_name, human, exc_info=exc_info, **kwargs)

    def _log(
        self,
        level: int,
        event_name: str,
        human_text: str,
        exc_info: bool = False,
        **kwargs: object,
    ) -> None:
        channel_o = kwargs.pop("channel", None)
        channel = channel_o if isinstance(channel_o, str) else None
        prefix = self._build_prefix(channel)
        if event_name == "chat_message":
            human_text = self._decorate_chat(human_text, channel)
        if _debug_enabled():
            msg = self._build_debug_message(event_name, prefix, human_text, kwargs)
        else:
            msg = f"{prefix} {human_text or event_name}"
        self.logger.log(level, msg, exc_info=exc_info)

    @classmethod
    def _build_prefix(cls, channel: str | None) -> str:
        core = f"#{channel}" if channel else "tmi"
        return f"[{core.ljust(cls.PREFIX_WIDTH)[: cls.PREFIX_WIDTH]}]"

    @staticmethod
    def _decorate_chat(human_text: str, channel: str | None) -> str:
        if human_text.startswith(CHAT_PREFIX):
            human_text = human_text[len(CHAT_PREFIX) :].lstrip()
        if channel:
            return f"{CHAT_PREFIX} #{channel} {human_text}"
        return f"{CHAT_PREFIX} {human_text}"

    @classmethod
    def _build_debug_message(
        cls,
        event_name: str,
        prefix: str,
        human_text: str,
        kwargs: dict[str, object],
    ) -> str:
        width = cls.EVENT_NAME_WIDTH
        if len(event_name) <= width:
            ev = event_name.ljust(width)
        else:
            ev = event_name[: width - 1] + "…"
        base = f"{ev} {prefix}"
        if human_text:
            base = f"{base} {human_text}"
        context = ", ".join(f"{k}={v}" for k, v in kwargs.items())
        if context:
            base = f"{base} ({context})"
        return base


logger = EventLogger()
