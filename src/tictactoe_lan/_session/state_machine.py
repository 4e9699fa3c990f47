# Area: Session
"""
tictactoe_lan._session.state_machine - Session State Machine
============================================================

Explicit finite-state machine over SessionPhase. Enter/exit hooks
registered per phase create and tear down phase-scoped resources
(board, sockets, discovery). A transition requested from inside a hook
is queued and runs after the current one completes, so hooks always
observe a consistent phase.
"""

from collections import deque
from typing import Callable, Deque, Dict, List
import logging

from .enums import SessionEvent, SessionPhase
from ..errors import InvalidTransitionError

logger = logging.getLogger("tictactoe_lan.state_machine")

Hook = Callable[[], None]
PhaseListener = Callable[[SessionPhase, SessionPhase, SessionEvent], None]

_TERMINAL_EXIT = {SessionEvent.RETURN_TO_MENU: SessionPhase.MAIN_MENU}

# Valid phase transitions: {current_phase: {event: next_phase}}
TRANSITIONS: Dict[SessionPhase, Dict[SessionEvent, SessionPhase]] = {
    SessionPhase.MAIN_MENU: {
        SessionEvent.START_HOTSEAT: SessionPhase.HOTSEAT,
        SessionEvent.HOST: SessionPhase.HOSTING_LOBBY,
        SessionEvent.JOIN: SessionPhase.CONNECT,
    },
    SessionPhase.HOTSEAT: {
        SessionEvent.HOTSEAT_READY: SessionPhase.PLAYING,
        **_TERMINAL_EXIT,
    },
    SessionPhase.HOSTING_LOBBY: {
        SessionEvent.PEER_CONNECTED: SessionPhase.PLAYING,
        SessionEvent.HOST_FAILED: SessionPhase.MAIN_MENU,
        **_TERMINAL_EXIT,
    },
    SessionPhase.CONNECT: {
        SessionEvent.SUBMIT_ADDRESS: SessionPhase.WAITING_CONNECTION,
        **_TERMINAL_EXIT,
    },
    SessionPhase.WAITING_CONNECTION: {
        SessionEvent.CONNECTION_ESTABLISHED: SessionPhase.PLAYING,
        SessionEvent.CONNECT_FAILED: SessionPhase.CONNECT,
        **_TERMINAL_EXIT,
    },
    SessionPhase.PLAYING: {
        SessionEvent.WIN: SessionPhase.GAME_OVER,
        SessionEvent.DRAW: SessionPhase.DRAW,
        SessionEvent.PEER_DISCONNECTED: SessionPhase.DISCONNECTED,
        **_TERMINAL_EXIT,
    },
    SessionPhase.GAME_OVER: dict(_TERMINAL_EXIT),
    SessionPhase.DRAW: dict(_TERMINAL_EXIT),
    SessionPhase.DISCONNECTED: dict(_TERMINAL_EXIT),
}


class SessionStateMachine:
    """
    State machine for the session lifecycle.

    Attributes:
        current_phase: The active phase
    """

    def __init__(self):
        """Initialize in MAIN_MENU with no hooks."""
        self.current_phase = SessionPhase.MAIN_MENU
        self._enter_hooks: Dict[SessionPhase, List[Hook]] = {}
        self._exit_hooks: Dict[SessionPhase, List[Hook]] = {}
        self._listeners: List[PhaseListener] = []
        self._queue: Deque[SessionEvent] = deque()
        self._in_transition = False

    def on_enter(self, phase: SessionPhase, hook: Hook) -> None:
        self._enter_hooks.setdefault(phase, []).append(hook)

    def on_exit(self, phase: SessionPhase, hook: Hook) -> None:
        self._exit_hooks.setdefault(phase, []).append(hook)

    def add_listener(self, listener: PhaseListener) -> None:
        """Register a callback(old_phase, new_phase, event) run after each transition."""
        self._listeners.append(listener)

    def can_transition(self, event: SessionEvent) -> bool:
        """
        Check if a transition is valid from the current phase.

        Args:
            event: The event to check

        Returns:
            True if the transition is valid, False otherwise
        """
        return event in TRANSITIONS.get(self.current_phase, {})

    def transition(self, event: SessionEvent) -> SessionPhase:
        """
        Execute a phase transition.

        Called from inside an enter/exit hook, the event is queued and
        validated once the running transition has finished; invalid
        queued events are logged and dropped.

        Args:
            event: The event triggering the transition

        Returns:
            The phase after the transition (and any queued ones)

        Raises:
            InvalidTransitionError: If the transition is not valid
        """
        if self._in_transition:
            self._queue.append(event)
            return self.current_phase

        if not self.can_transition(event):
            raise InvalidTransitionError(event.value, self.current_phase.value)

        self._in_transition = True
        try:
            self._apply(event)
            while self._queue:
                queued = self._queue.popleft()
                if not self.can_transition(queued):
                    logger.warning(
                        f"Dropping queued {queued.value} from {self.current_phase.value}"
                    )
                    continue
                self._apply(queued)
        finally:
            self._queue.clear()
            self._in_transition = False
        return self.current_phase

    def _apply(self, event: SessionEvent) -> None:
        old = self.current_phase
        new = TRANSITIONS[old][event]
        logger.info(f"Phase {old.value} -> {new.value} ({event.value})")
        for hook in self._exit_hooks.get(old, []):
            hook()
        self.current_phase = new
        for hook in self._enter_hooks.get(new, []):
            hook()
        for listener in self._listeners:
            listener(old, new, event)
