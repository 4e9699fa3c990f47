"""
tictactoe_lan - Two-player tic-tac-toe over the local network
=============================================================

One process is the authoritative host: it validates every pick, owns
the board and replicates each accepted change to the client. Clients
find hosts with a UDP broadcast and mirror what the host tells them.

Quick Start:
    from tictactoe_lan import GameConfig, GameRunner, ConsoleFrontend
    runner = GameRunner(GameConfig(), frontend=ConsoleFrontend())
    runner.controller.host_game()
    runner.run()

Driving the controller directly (e.g. from another UI):
    from tictactoe_lan import GameController
    controller = GameController()
    controller.start_hotseat()
    controller.pick(4)
    controller.tick()

Type Definitions
----------------
    from tictactoe_lan import Symbol, Player, PickResult, Outcome, SessionView
"""

from ._core import Board, Session, TurnAuthority, evaluate
from ._session import GameController, SessionEvent, SessionPhase, SessionStateMachine
from .config import GameConfig, load_config, validate_config
from .console import ConsoleFrontend
from .errors import (
    TicTacToeError,
    ConfigError,
    InvalidTransitionError,
    CellOccupiedError,
    TransportError,
    HandshakeRejectedError,
    MessageDecodeError,
)
from .runner import GameRunner
from .types import (
    HOST_PLAYER_ID,
    FIRST_MOVER,
    Symbol,
    Player,
    RejectReason,
    OutcomeKind,
    Outcome,
    PickResult,
    SessionView,
)

__all__ = [
    # Main classes
    "GameController",
    "GameRunner",
    "ConsoleFrontend",
    "GameConfig",
    "load_config",
    "validate_config",
    # Core
    "Board",
    "Session",
    "TurnAuthority",
    "evaluate",
    "SessionEvent",
    "SessionPhase",
    "SessionStateMachine",
    # Errors
    "TicTacToeError",
    "ConfigError",
    "InvalidTransitionError",
    "CellOccupiedError",
    "TransportError",
    "HandshakeRejectedError",
    "MessageDecodeError",
    # Types
    "HOST_PLAYER_ID",
    "FIRST_MOVER",
    "Symbol",
    "Player",
    "RejectReason",
    "OutcomeKind",
    "Outcome",
    "PickResult",
    "SessionView",
]
__version__ = "1.0.0"
