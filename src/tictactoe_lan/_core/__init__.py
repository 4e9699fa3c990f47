# Area: Core
"""
Game rules and session-scoped state.

This package contains:
- Board model and win geometry
- Win evaluator
- Session context
- Turn authority (the only writer of board and turn)
"""

from .board import Board, winning_lines
from .session import Session
from .turn_authority import FactSink, TurnAuthority
from .win_evaluator import evaluate

__all__ = [
    "Board",
    "winning_lines",
    "Session",
    "FactSink",
    "TurnAuthority",
    "evaluate",
]
