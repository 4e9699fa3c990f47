# Area: Shared
"""
tictactoe_lan._shared.logging_formatters - Logging formatters and filters
=========================================================================

Formatter and filter classes plus the console mode flag. Terminal lines
name the component (`transport`, `controller`, ...) rather than the full
logger path; file lines are JSON objects that also carry the structured
extras attached by `log_structured_error()`.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

PACKAGE_PREFIX = "tictactoe_lan."

# Record attributes copied into the JSON line when a caller sets them
JSON_EXTRAS = ("error_type", "peer", "session_id")

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
RESET = "\033[0m"

# While set, the console front end owns the terminal
_console_mode_enabled = False


def component_name(logger_name: str) -> str:
    """`tictactoe_lan.transport` -> `transport`; the package logger -> `app`."""
    if logger_name.startswith(PACKAGE_PREFIX):
        return logger_name[len(PACKAGE_PREFIX):]
    if logger_name == PACKAGE_PREFIX.rstrip("."):
        return "app"
    return logger_name


class ConsoleModeFilter(logging.Filter):
    """Drops terminal records while the console front end draws the board.

    Attached to the terminal handler only, so the file keeps everything.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return not _console_mode_enabled


class TerminalFormatter(logging.Formatter):
    """Colors the level and exposes `%(component)s` to the format string."""

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy: the file handler formats the same record
        copy = logging.makeLogRecord(record.__dict__)
        color = LEVEL_COLORS.get(copy.levelno, RESET)
        copy.levelname = f"{color}{copy.levelname:<7}{RESET}"
        copy.component = component_name(copy.name)
        return super().format(copy)


class JSONFormatter(logging.Formatter):
    """One JSON object per record for the log file."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "component": component_name(record.name),
            "message": record.getMessage(),
        }
        for key in JSON_EXTRAS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def enable_console_mode() -> None:
    global _console_mode_enabled
    _console_mode_enabled = True


def disable_console_mode() -> None:
    global _console_mode_enabled
    _console_mode_enabled = False


def is_console_mode_enabled() -> bool:
    return _console_mode_enabled
