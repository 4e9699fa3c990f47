# Area: Shared
"""
tictactoe_lan._shared.protocol_logger - Replication traffic logging
===================================================================

One colored line per message crossing the game transport, with the
session id, direction, peer and sequence number. Disabled unless the
application is started with --protocol-log.
"""

from __future__ import annotations
import sys
from datetime import datetime
from typing import Optional

# ══════════════════════════════════════════════════════════════
# ANSI COLOR CODES
# ══════════════════════════════════════════════════════════════

GREEN = "\033[32m"         # Replicated facts
ORANGE = "\033[38;5;208m"  # Pick requests
RED = "\033[31m"           # Errors
RESET = "\033[0m"

# ══════════════════════════════════════════════════════════════
# MESSAGE TYPE → DISPLAY NAME
# ══════════════════════════════════════════════════════════════

DISPLAY_NAMES = {
    "PLAYER_JOINED": "PLAYER-JOINED",
    "CELL_OCCUPIED": "CELL-OCCUPIED",
    "GAME_ENDED": "GAME-ENDED",
    "PICK_REQUEST": "PICK",
}


class ProtocolLogger:
    """Logger for replication and event traffic."""

    def __init__(self, enabled: bool = False, role: str = "NONE"):
        self.enabled = enabled
        self.role = role
        self._session_id = "--------"

    def set_session(self, session_id: str, role: str) -> None:
        """Set the session context shown on every line."""
        self._session_id = session_id or "--------"
        self.role = role.upper()

    def _now_ms(self) -> str:
        return datetime.now().strftime("%H:%M:%S:%f")[:-3]

    def _line(self, direction: str, peer: str, message_type: str, seq: Optional[int]) -> str:
        display = DISPLAY_NAMES.get(message_type, message_type)
        color = ORANGE if message_type == "PICK_REQUEST" else GREEN
        seq_text = f"#{seq}" if seq is not None else "-"
        return (
            f"{color}{self._now_ms()} | SESSION: {self._session_id:8} | {direction:8} | "
            f"{peer:16} | {display:14} | SEQ: {seq_text:5} | ROLE: {self.role}{RESET}"
        )

    def log_received(self, peer: str, message_type: str, seq: Optional[int] = None) -> None:
        """Log a received message."""
        if self.enabled:
            print(self._line("RECEIVED", f"from {peer}", message_type, seq), file=sys.stdout)

    def log_sent(self, peer: str, message_type: str, seq: Optional[int] = None) -> None:
        """Log a sent message."""
        if self.enabled:
            print(self._line("SENT", f"to {peer}", message_type, seq), file=sys.stdout)

    def log_error(self, description: str) -> None:
        if self.enabled:
            print(f"{RED}[ERROR] {self._now_ms()} | {description}{RESET}", file=sys.stderr)


# Global singleton instance
_protocol_logger: Optional[ProtocolLogger] = None


def get_protocol_logger() -> ProtocolLogger:
    """Get or create the global protocol logger instance."""
    global _protocol_logger
    if _protocol_logger is None:
        _protocol_logger = ProtocolLogger()
    return _protocol_logger
