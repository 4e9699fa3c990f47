# Area: Core
"""
tictactoe_lan._core.win_evaluator - Terminal condition detection
================================================================

Pure function over a Board. Lines are scanned in the fixed
`winning_lines()` order and the first completed line wins. Win is
checked before fullness, so a winning last move on a full board is a
Win and not a Draw.
"""

from __future__ import annotations
from typing import Optional

from .board import Board
from ..types import Outcome


def evaluate(board: Board) -> Optional[Outcome]:
    """
    Evaluate a board.

    Args:
        board: The board to inspect (not modified)

    Returns:
        Outcome.win(symbol) for the first completed line,
        Outcome.draw() if every cell is occupied without a line,
        None while the game continues
    """
    for occupants in board.lines():
        first = occupants[0]
        if first is not None and all(cell == first for cell in occupants):
            return Outcome.win(first)

    if board.is_full():
        return Outcome.draw()

    return None
