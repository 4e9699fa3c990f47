# Area: Shared
"""
tictactoe_lan._shared.replication - Replicated fact log and client mirror
=========================================================================

Host side: `ReplicationLog` records every state-changing fact in the
order the turn authority (or the lobby) produced it and numbers it with
a per-session sequence starting at 1. A newly connected client is sent
the whole log; afterwards only the unsent tail.

Client side: `ReplicaMirror` applies facts verbatim to a read-only copy
of the session. A fact whose sequence number was already applied is a
duplicate and is ignored; a gap means the stream is broken and the fact
is dropped. The mirror never re-derives state on its own.
"""

from __future__ import annotations
from typing import List, Optional
import logging

from .messages import CellOccupied, Fact, GameEnded, PlayerJoined
from .._core.session import Session
from ..errors import CellOccupiedError
from ..types import Outcome, Player, Symbol

logger = logging.getLogger("tictactoe_lan.replication")


class ReplicationLog:
    """
    Ordered fact log for one session (host side).

    Implements the FactSink protocol used by TurnAuthority.
    """

    def __init__(self) -> None:
        self._facts: List[Fact] = []
        self._cursor = 0

    @property
    def next_seq(self) -> int:
        return len(self._facts) + 1

    def _append(self, fact: Fact) -> None:
        self._facts.append(fact)
        logger.debug(f"fact #{fact.seq}: {type(fact).__name__}")

    def player_joined(self, player: Player) -> None:
        self._append(PlayerJoined(seq=self.next_seq, player_id=player.player_id,
                                  symbol=player.symbol))

    def cell_occupied(self, cell_index: int, symbol: Symbol) -> None:
        self._append(CellOccupied(seq=self.next_seq, cell_index=cell_index, symbol=symbol))

    def game_ended(self, outcome: Outcome, winner: Optional[Player]) -> None:
        self._append(GameEnded(
            seq=self.next_seq,
            outcome=outcome.kind.value,
            winner_id=winner.player_id if winner is not None else None,
            symbol=outcome.symbol,
        ))

    @property
    def facts(self) -> List[Fact]:
        return list(self._facts)

    def rewind(self) -> None:
        """Mark every fact unsent, so the next drain replays the full log."""
        self._cursor = 0

    def drain(self) -> List[Fact]:
        """Facts not yet handed out, in order."""
        pending = self._facts[self._cursor:]
        self._cursor = len(self._facts)
        return pending


class ReplicaMirror:
    """
    Applies replicated facts to a client-side session copy.

    Attributes:
        last_seq: Sequence number of the last applied fact
    """

    def __init__(self, session: Session):
        self.session = session
        self.last_seq = 0

    def apply(self, fact: Fact) -> Optional[Fact]:
        """
        Apply one fact.

        Returns:
            The fact if it was applied, None if it was a duplicate or
            could not be applied
        """
        if fact.seq <= self.last_seq:
            logger.debug(f"duplicate fact #{fact.seq} ignored (last applied #{self.last_seq})")
            return None
        if fact.seq != self.last_seq + 1:
            logger.error(f"fact stream gap: expected #{self.last_seq + 1}, got #{fact.seq}")
            return None

        if isinstance(fact, PlayerJoined):
            applied = self._apply_player(fact)
        elif isinstance(fact, CellOccupied):
            applied = self._apply_cell(fact)
        elif isinstance(fact, GameEnded):
            applied = self._apply_end(fact)
        else:
            logger.warning(f"unknown fact type {type(fact).__name__}")
            applied = False

        if not applied:
            return None
        self.last_seq = fact.seq
        return fact

    def _apply_player(self, fact: PlayerJoined) -> bool:
        try:
            self.session.add_player(Player(fact.player_id, fact.symbol))
        except ValueError as e:
            logger.error(f"cannot apply fact #{fact.seq}: {e}")
            return False
        return True

    def _apply_cell(self, fact: CellOccupied) -> bool:
        board = self.session.board
        if board is None:
            logger.error(f"cannot apply fact #{fact.seq}: no board running")
            return False
        try:
            board.occupy(fact.cell_index, fact.symbol)
        except (CellOccupiedError, IndexError) as e:
            logger.error(f"cannot apply fact #{fact.seq}: {e}")
            return False
        self.session.turn = fact.symbol.next()
        return True

    def _apply_end(self, fact: GameEnded) -> bool:
        if fact.outcome == "win":
            self.session.record_outcome(Outcome.win(fact.symbol))
        else:
            self.session.record_outcome(Outcome.draw())
        if self.session.winner is not None and self.session.winner.player_id != fact.winner_id:
            logger.warning(
                f"winner mismatch: roster says {self.session.winner.player_id}, "
                f"host says {fact.winner_id}"
            )
        return True
