# Area: Core
"""
tictactoe_lan._core.session - Session context
=============================================

One explicit object owning everything that lives for a single game
session: the player roster, the board, the current turn and the
winner. A fresh Session is built when a game mode is entered and
dropped when returning to the menu.

The Board and the turn exist only while a board is running
(`start_board()` / `end_board()`); the winner survives until the next
session is created.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging
import uuid

from .board import Board
from ..config import GRID_SIZE
from ..types import FIRST_MOVER, Outcome, Player, Symbol

logger = logging.getLogger("tictactoe_lan.session")


@dataclass
class Session:
    """
    Session-scoped state.

    Only the host's turn authority writes `board` and `turn`; clients
    update their mirror through `ReplicaMirror`.
    """
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    grid_size: int = GRID_SIZE
    players: List[Player] = field(default_factory=list)
    board: Optional[Board] = None
    turn: Optional[Symbol] = None
    winner: Optional[Player] = None
    outcome: Optional[Outcome] = None

    # ── Players ──────────────────────────────────────────────

    def add_player(self, player: Player) -> None:
        """
        Add a player to the roster.

        Raises:
            ValueError: If another player already holds the symbol
        """
        holder = self.holder_of(player.symbol)
        if holder is not None:
            raise ValueError(
                f"Symbol {player.symbol} already held by player {holder.player_id}"
            )
        self.players.append(player)
        logger.info(f"[{self.session_id}] Player {player.player_id} joined as {player.symbol}")

    def holder_of(self, symbol: Symbol) -> Optional[Player]:
        for player in self.players:
            if player.symbol is symbol:
                return player
        return None

    def holds_turn(self, player_id: int) -> bool:
        """True if `player_id` holds the symbol whose turn it is."""
        if self.turn is None:
            return False
        return any(p.player_id == player_id and p.symbol is self.turn for p in self.players)

    def symbols_of(self, player_id: int) -> List[Symbol]:
        return [p.symbol for p in self.players if p.player_id == player_id]

    def remove_player(self, player_id: int) -> List[Player]:
        """Drop every roster entry for `player_id`. Returns the removed players."""
        removed = [p for p in self.players if p.player_id == player_id]
        if removed:
            self.players = [p for p in self.players if p.player_id != player_id]
            logger.info(f"[{self.session_id}] Player {player_id} left")
        return removed

    def clear_players(self) -> None:
        if self.players:
            logger.info(f"[{self.session_id}] Tearing down {len(self.players)} player(s)")
        self.players.clear()

    # ── Board lifecycle ──────────────────────────────────────

    def start_board(self) -> None:
        """Create a fresh board, reset the turn to the first mover, clear the winner."""
        self.board = Board(self.grid_size)
        self.turn = FIRST_MOVER
        self.winner = None
        self.outcome = None
        logger.info(f"[{self.session_id}] Board started, {self.turn} moves first")

    def end_board(self) -> None:
        self.board = None
        self.turn = None

    @property
    def is_running(self) -> bool:
        return self.board is not None

    def advance_turn(self) -> None:
        if self.turn is not None:
            self.turn = self.turn.next()

    def record_outcome(self, outcome: Outcome) -> None:
        """Store a terminal outcome; a win resolves the winner from the roster."""
        self.outcome = outcome
        if outcome.is_win:
            self.winner = self.holder_of(outcome.symbol)
            winner_id = self.winner.player_id if self.winner else None
            logger.info(f"[{self.session_id}] {outcome.symbol} wins (player {winner_id})")
        else:
            self.winner = None
            logger.info(f"[{self.session_id}] Draw")

    def board_snapshot(self) -> Dict[int, Optional[Symbol]]:
        return self.board.snapshot() if self.board is not None else {}
