# Area: Shared
"""
tictactoe_lan._shared.logging_config - Structured logging setup
===============================================================

Configures dual logging: terminal (colored) + file (JSON lines).
Provides structured error logging for transport failures.
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Union

from .logging_formatters import (
    ConsoleModeFilter,
    JSONFormatter,
    TerminalFormatter,
)

if TYPE_CHECKING:
    from ..errors import TransportError, MessageDecodeError

# Package logger
logger = logging.getLogger("tictactoe_lan")


def setup_logging(
    log_file_path: str = "tictactoe_lan.log",
    level: Union[int, str] = logging.INFO,
) -> None:
    """
    Configure logging for the package.

    Parameters
    ----------
    log_file_path : str
        Path to the log file. Empty string disables file logging.
    level : int or str
        Logging level. Defaults to INFO.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    pkg_logger = logging.getLogger("tictactoe_lan")
    pkg_logger.setLevel(level)

    # Remove existing handlers
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
        handler.close()

    terminal_handler = logging.StreamHandler(sys.stderr)
    terminal_handler.setLevel(level)
    terminal_handler.setFormatter(TerminalFormatter(
        fmt="%(asctime)s │ %(levelname)s │ %(component)s │ %(message)s",
        datefmt="%H:%M:%S",
    ))
    terminal_handler.addFilter(ConsoleModeFilter())
    pkg_logger.addHandler(terminal_handler)

    if log_file_path:
        try:
            log_path = Path(log_file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(JSONFormatter())
            pkg_logger.addHandler(file_handler)
        except OSError as e:
            pkg_logger.warning(f"Could not create log file: {e}")

    # Prevent propagation to root logger
    pkg_logger.propagate = False


def log_structured_error(error: "Union[TransportError, MessageDecodeError]") -> None:
    """
    Log an error that carries a structured block.

    The block goes to DEBUG (file), the one-line summary to ERROR.
    """
    logger.debug(error.format_error_log())
    logger.error(
        f"{error.__class__.__name__}: {error}",
        extra={"error_type": error.__class__.__name__},
    )
