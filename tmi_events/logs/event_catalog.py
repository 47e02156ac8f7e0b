"""Human readable text for ``log_event`` calls, keyed by ``(domain, action)``.

The templates live in ``event_templates.json`` next to this module as a
nested ``{domain: {action: template}}`` object.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

DEFAULT_TEMPLATES_PATH = Path(__file__).with_name("event_templates.json")

EVENT_TEMPLATES: dict[tuple[str, str], str] = {}


def load_event_templates(path: Path = DEFAULT_TEMPLATES_PATH) -> dict[tuple[str, str], str]:
    """Read a template file; entries that are not strings are skipped.

    An unreadable file yields an empty catalog, in which case ``log_event``
    derives its text from the event name.
    """
    try:
        raw: Any = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logging.getLogger("tmi_events").warning(
            "Event templates unavailable (%s): %s", path, e
        )
        return {}
    if not isinstance(raw, dict):
        return {}
    return {
        (domain, action): template
        for domain, actions in raw.items()
        if isinstance(actions, dict)
        for action, template in actions.items()
        if isinstance(template, str)
    }


def reload_event_templates(path: Path | None = None) -> None:
    global EVENT_TEMPLATES  # noqa: PLW0603
    EVENT_TEMPLATES = load_event_templates(path or DEFAULT_TEMPLATES_PATH)


reload_event_templates()

__all__ = ["EVENT_TEMPLATES", "load_event_templates", "reload_event_templates"]
