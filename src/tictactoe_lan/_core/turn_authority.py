# Area: Core
"""
tictactoe_lan._core.turn_authority - Pick validation and application
====================================================================

The single writer of Board and turn. Every pick, whether it comes from
the local player on the host or from a remote client, goes through
`submit_pick()`; there is no separate fast path for local play.

Checks, in order:
1. cell index is an int in [0, N*N)           -> MALFORMED
2. requester holds the symbol of the turn     -> WRONG_TURN
3. target cell is empty                       -> OCCUPIED

Rejections are logged locally and never answered on the network.
On acceptance the cell is bound, the fact is emitted, the turn
advances and the win evaluator runs.
"""

from __future__ import annotations
from typing import Optional, Protocol
import logging

from .session import Session
from .win_evaluator import evaluate
from ..types import Outcome, PickResult, Player, RejectReason, Symbol

logger = logging.getLogger("tictactoe_lan.authority")


class FactSink(Protocol):
    """Receives state-changing facts in the order the authority applies them."""

    def cell_occupied(self, cell_index: int, symbol: Symbol) -> None:
        ...

    def game_ended(self, outcome: Outcome, winner: Optional[Player]) -> None:
        ...


class TurnAuthority:
    """
    Validates and applies picks against one session.

    Usage:
        authority = TurnAuthority(session, sink=replication_log)
        result = authority.submit_pick(requester=HOST_PLAYER_ID, cell_index=4)
    """

    def __init__(self, session: Session, sink: Optional[FactSink] = None):
        self.session = session
        self.sink = sink

    def submit_pick(self, requester: int, cell_index: object) -> PickResult:
        """
        Validate and, if legal, apply a pick.

        Args:
            requester: Identity of the player asking
            cell_index: Untrusted cell index

        Returns:
            PickResult; `outcome` is set when the pick ended the game

        Raises:
            RuntimeError: If the session has no running board
        """
        session = self.session
        board = session.board
        if board is None or session.turn is None:
            raise RuntimeError("submit_pick called without a running board")

        if not board.in_range(cell_index):
            logger.debug(f"received invalid cell index {cell_index!r} from player {requester}")
            return PickResult.rejected(cell_index, RejectReason.MALFORMED)

        if not session.holds_turn(requester):
            logger.debug(f"player {requester} chose cell {cell_index} at wrong turn")
            return PickResult.rejected(cell_index, RejectReason.WRONG_TURN)

        if not board.is_empty(cell_index):
            logger.debug(f"player {requester} has chosen an already occupied cell {cell_index}")
            return PickResult.rejected(cell_index, RejectReason.OCCUPIED)

        symbol = session.turn
        board.occupy(cell_index, symbol)
        if self.sink is not None:
            self.sink.cell_occupied(cell_index, symbol)
        session.advance_turn()

        outcome = evaluate(board)
        if outcome is not None:
            session.record_outcome(outcome)
            if self.sink is not None:
                self.sink.game_ended(outcome, session.winner)

        logger.info(f"[{session.session_id}] {symbol} -> cell {cell_index} (player {requester})")
        return PickResult(accepted=True, cell_index=cell_index, symbol=symbol, outcome=outcome)
