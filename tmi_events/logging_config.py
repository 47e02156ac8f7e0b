r"""
Logging configuration for applications embedding the translation layer.

Provides a colorlog based console setup plus structured error logging with
per-category aggregation, so noisy sources of dropped lines stand out.
"""

import atexit
import logging
import os
import sys
import threading
import time
from collections import defaultdict
from typing import Any

import colorlog

from .logs.logger import logger as event_logger

MAX_ERRORS_PER_TYPE = 1000


class ErrorAggregator:
    """Aggregates error occurrences by category.

    Tracks error frequencies and provides summary reports; the router feeds
    it every dropped line so operators can see which failure dominates.
    """

    def __init__(self, clock=time.time):
        self.errors: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.lock = threading.Lock()
        self._clock = clock
        self.start_time = clock()

    def record_error(
        self, error_type: str, message: str, context: dict[str, Any] | None = None
    ) -> None:
        """Record an error occurrence with context."""
        with self.lock:
            self.errors[error_type].append(
                {
                    "timestamp": self._clock(),
                    "message": message,
                    "context": context or {},
                }
            )
            if len(self.errors[error_type]) > MAX_ERRORS_PER_TYPE:
                self.errors[error_type] = self.errors[error_type][-MAX_ERRORS_PER_TYPE:]

    def get_error_summary(self) -> dict[str, Any]:
        """Get a summary of error patterns."""
        with self.lock:
            summary = {}
            now = self._clock()
            runtime_hours = (now - self.start_time) / 3600
            for error_type, occurrences in self.errors.items():
                recent = [e for e in occurrences if now - e["timestamp"] < 3600]
                summary[error_type] = {
                    "total_count": len(occurrences),
                    "recent_count": len(recent),
                    "rate_per_hour": len(occurrences) / max(runtime_hours, 1),
                    "last_occurrence": occurrences[-1] if occurrences else None,
                }
            return summary

    def reset(self) -> None:
        with self.lock:
            self.errors.clear()
            self.start_time = self._clock()

    def log_summary_report(self) -> None:
        """Log a summary report of error patterns."""
        summary = self.get_error_summary()
        if not summary:
            logging.info("No errors recorded in current session")
            return
        logging.warning("ERROR SUMMARY REPORT")
        for error_type, stats in summary.items():
            logging.warning(
                f"  {error_type}: {stats['total_count']} total, "
                f"{stats['recent_count']} in last hour, "
                f"{stats['rate_per_hour']:.1f}/hour"
            )


error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: BaseException | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log an error with structured context and record it for aggregation.

    Args:
        error_type: Category of the error (e.g., 'identity', 'malformed').
        message: Descriptive error message.
        exception: The exception that occurred (optional).
        context: Additional context data for debugging.
        level: Logging level (default: ERROR).
    """
    structured_message = f"[{error_type.upper()}] {message}"
    if exception is not None:
        structured_message += f" | Exception: {type(exception).__name__}: {exception}"
    if context:
        context_str = " | ".join(f"{k}={v}" for k, v in context.items())
        structured_message += f" | Context: {context_str}"

    logging.getLogger("tmi_events").log(level, structured_message)
    error_aggregator.record_error(error_type, message, context)


class LoggerConfigurator:
    """Configures root logging with colored output using colorlog.

    Uses the DEBUG environment variable ('true', '1' or 'yes') to select the
    DEBUG level, INFO otherwise.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or {}

    def build_formatter(self) -> colorlog.ColoredFormatter:
        return colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "magenta",
            },
            secondary_log_colors={
                "message": {
                    "ERROR": "red",
                    "CRITICAL": "magenta",
                }
            },
            reset=True,
        )

    def configure(self) -> None:
        debug_env = os.environ.get("DEBUG", "").lower()
        log_level = logging.DEBUG if debug_env in ("true", "1", "yes") else logging.INFO

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(self.build_formatter())

        logging.basicConfig(level=log_level, handlers=[handler], format="%(message)s")
        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)
        logging.getLogger("aiohttp").setLevel(logging.WARNING)
        # Event records now reach the colored root handler.
        event_logger.detach_console()

        if self.config.get("summary_on_exit", True):
            atexit.register(self._log_final_error_summary)

    def _log_final_error_summary(self) -> None:
        logging.info("Final error summary before shutdown:")
        error_aggregator.log_summary_report()
