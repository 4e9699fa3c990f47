"""
tictactoe_lan.types - Shared value types
========================================

Symbols, player records, pick results and evaluation outcomes used by
the core and by front ends. All types are exported from the main package:

    from tictactoe_lan import Symbol, Player, PickResult, Outcome

`SessionView` documents the read-only snapshot a front end renders:

    >>> SessionView.__annotations__
    {'phase': str, 'role': str, 'turn': Optional[str], 'board': Dict[int, Optional[str]], ...}
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, TypedDict


# Reserved identity of the host process acting as a local player.
HOST_PLAYER_ID = 0


class Symbol(Enum):
    """The two markers a player can play as. CROSS always moves first."""
    CROSS = "cross"
    NOUGHT = "nought"

    def next(self) -> "Symbol":
        """Get the other symbol."""
        return Symbol.NOUGHT if self is Symbol.CROSS else Symbol.CROSS

    @property
    def glyph(self) -> str:
        return "X" if self is Symbol.CROSS else "O"

    def __str__(self) -> str:
        return self.value


FIRST_MOVER = Symbol.CROSS


@dataclass(frozen=True)
class Player:
    """A participant identity bound to exactly one symbol for a session."""
    player_id: int          # connection id, or HOST_PLAYER_ID
    symbol: Symbol


class RejectReason(Enum):
    """Why the turn authority refused a pick."""
    MALFORMED = "malformed"              # cell index outside [0, N*N) or not an int
    WRONG_TURN = "wrong_turn"            # requester does not hold the current turn
    OCCUPIED = "occupied"                # target cell already holds a symbol


class OutcomeKind(Enum):
    WIN = "win"
    DRAW = "draw"


@dataclass(frozen=True)
class Outcome:
    """Terminal result of a board: a win for one symbol, or a draw."""
    kind: OutcomeKind
    symbol: Optional[Symbol] = None

    @classmethod
    def win(cls, symbol: Symbol) -> "Outcome":
        return cls(OutcomeKind.WIN, symbol)

    @classmethod
    def draw(cls) -> "Outcome":
        return cls(OutcomeKind.DRAW)

    @property
    def is_win(self) -> bool:
        return self.kind is OutcomeKind.WIN

    @property
    def is_draw(self) -> bool:
        return self.kind is OutcomeKind.DRAW


@dataclass(frozen=True)
class PickResult:
    """Result of submitting a pick to the turn authority."""
    accepted: bool
    cell_index: Any = None
    symbol: Optional[Symbol] = None
    reason: Optional[RejectReason] = None
    outcome: Optional[Outcome] = None

    @classmethod
    def rejected(cls, cell_index: Any, reason: RejectReason) -> "PickResult":
        return cls(accepted=False, cell_index=cell_index, reason=reason)


# ============================================
# Front-end snapshot
# ============================================

class SessionView(TypedDict):
    """Read-only snapshot of the controller for rendering.

    Fields
    ------
    phase : str
        Current session phase value, e.g. "playing".
    role : str
        "none", "local", "host" or "client".
    turn : Optional[str]
        Symbol allowed to act, None outside a running board.
    board : Dict[int, Optional[str]]
        Cell index -> symbol value or None. Empty when no board exists.
    winner_id : Optional[int]
        Identity of the winning player, None for draw or ongoing.
    winner_symbol : Optional[str]
        Symbol of the winning player.
    local_player_id : Optional[int]
        Identity of this process in the session.
    discovered_hosts : List[str]
        Addresses found by the discovery requester.
    """
    phase: str
    role: str
    turn: Optional[str]
    board: Dict[int, Optional[str]]
    winner_id: Optional[int]
    winner_symbol: Optional[str]
    local_player_id: Optional[int]
    discovered_hosts: List[str]
