# Area: Session
"""
Session lifecycle.

This package contains:
- Phase and event enums
- Session state machine with enter/exit hooks
- Game controller, the surface front ends drive
"""

from .enums import SessionEvent, SessionPhase
from .state_machine import SessionStateMachine, TRANSITIONS
from .controller import (
    GameController,
    ROLE_CLIENT,
    ROLE_HOST,
    ROLE_LOCAL,
    ROLE_NONE,
)

__all__ = [
    "SessionEvent",
    "SessionPhase",
    "SessionStateMachine",
    "TRANSITIONS",
    "GameController",
    "ROLE_CLIENT",
    "ROLE_HOST",
    "ROLE_LOCAL",
    "ROLE_NONE",
]
