"""
tictactoe_lan.errors - Custom exception classes
===============================================

Defines the exception hierarchy for the game engine and its network
layer. Network errors store full context for structured logging.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import json


class TicTacToeError(Exception):
    """Base exception for all tictactoe_lan package errors."""
    pass


class ConfigError(TicTacToeError):
    """Raised when the configuration holds unusable values."""
    pass


class InvalidTransitionError(TicTacToeError, ValueError):
    """Raised when an event is not allowed from the current phase."""

    def __init__(self, event: str, phase: str):
        self.event = event
        self.phase = phase
        super().__init__(f"Invalid transition: {event} from {phase}")


class CellOccupiedError(TicTacToeError):
    """Raised when something tries to overwrite an occupied cell."""

    def __init__(self, cell_index: int, occupant: Any):
        self.cell_index = cell_index
        self.occupant = occupant
        super().__init__(f"Cell {cell_index} is already occupied by {occupant}")


class TransportError(TicTacToeError):
    """Raised when a socket cannot be bound or connected."""

    def __init__(
        self,
        operation: str,
        address: Tuple[str, int],
        cause: Optional[BaseException] = None,
    ):
        self.operation = operation
        self.address = address
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Transport {operation} failed for {address[0]}:{address[1]}{detail}")

    def format_error_log(self) -> str:
        return _format_error_block(
            error_type="TRANSPORT_FAILURE",
            summary=f"{self.operation} {self.address[0]}:{self.address[1]}",
            context={"operation": self.operation, "host": self.address[0],
                     "port": self.address[1]},
            details=[repr(self.cause)] if self.cause is not None else None,
        )


class HandshakeRejectedError(TicTacToeError):
    """Raised on the client when the host refuses the handshake."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Host rejected handshake: {reason}")


class MessageDecodeError(TicTacToeError):
    """Raised when an inbound frame is not a valid protocol message."""

    def __init__(self, raw: bytes, validation_errors: List[str]):
        self.raw = raw
        self.validation_errors = validation_errors
        super().__init__(f"Undecodable frame ({len(raw)} bytes): {validation_errors}")

    def format_error_log(self) -> str:
        preview = self.raw[:200].decode("utf-8", errors="replace")
        return _format_error_block(
            error_type="MESSAGE_DECODE_FAILURE",
            summary=f"{len(self.raw)} bytes",
            context={"frame": preview},
            details=self.validation_errors,
        )


def _format_error_block(
    error_type: str,
    summary: str,
    context: Dict[str, Any],
    details: Optional[List[str]],
) -> str:
    """Format a structured error block for the log file."""
    from datetime import datetime, timezone

    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"

    lines = [
        "",
        "=" * 64,
        f" {error_type}",
        "=" * 64,
        f" Timestamp:    {timestamp}",
        f" Summary:      {summary}",
        "",
        " ── CONTEXT " + "─" * 52,
        _indent_json(context),
    ]

    if details:
        lines.append("")
        lines.append(" ── DETAILS " + "─" * 52)
        for detail in details:
            lines.append(f" • {detail}")

    lines.append("")
    lines.append("=" * 64)
    lines.append("")

    return "\n".join(lines)


def _indent_json(data: Dict[str, Any], indent: int = 2) -> str:
    """Format JSON with indentation for error logs."""
    try:
        formatted = json.dumps(data, indent=indent, default=str)
        return "\n".join(" " + line for line in formatted.split("\n"))
    except (TypeError, ValueError):
        return f" {repr(data)}"
