# Area: Session
"""
tictactoe_lan._session.enums - Session State Machine Enums
==========================================================

Defines the phases and events of the session state machine.
"""

from enum import Enum


class SessionPhase(Enum):
    """
    Phases of a game session. Exactly one is active at a time.

    Phase transitions:
    MAIN_MENU -> HOTSEAT (on START_HOTSEAT)
    MAIN_MENU -> HOSTING_LOBBY (on HOST)
    MAIN_MENU -> CONNECT (on JOIN)
    HOTSEAT -> PLAYING (on HOTSEAT_READY)
    HOSTING_LOBBY -> PLAYING (on PEER_CONNECTED)
    HOSTING_LOBBY -> MAIN_MENU (on HOST_FAILED)
    CONNECT -> WAITING_CONNECTION (on SUBMIT_ADDRESS)
    WAITING_CONNECTION -> PLAYING (on CONNECTION_ESTABLISHED)
    WAITING_CONNECTION -> CONNECT (on CONNECT_FAILED)
    PLAYING -> GAME_OVER (on WIN)
    PLAYING -> DRAW (on DRAW)
    PLAYING -> DISCONNECTED (on PEER_DISCONNECTED)
    Any phase but MAIN_MENU -> MAIN_MENU (on RETURN_TO_MENU)
    """
    MAIN_MENU = "main_menu"
    CONNECT = "connect"
    HOSTING_LOBBY = "hosting_lobby"
    WAITING_CONNECTION = "waiting_connection"
    HOTSEAT = "hotseat"
    PLAYING = "playing"
    GAME_OVER = "game_over"
    DRAW = "draw"
    DISCONNECTED = "disconnected"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionPhase.GAME_OVER, SessionPhase.DRAW, SessionPhase.DISCONNECTED)


class SessionEvent(Enum):
    """
    Events that trigger phase transitions.

    Events are triggered by:
    - START_HOTSEAT / HOST / JOIN: menu choice of the local user
    - SUBMIT_ADDRESS: user entered a host address in Connect
    - HOTSEAT_READY: both local players created
    - PEER_CONNECTED: host accepted the remote client's handshake
    - CONNECTION_ESTABLISHED: client handshake done and both players replicated
    - WIN / DRAW: win evaluator (host) or GAME_ENDED fact (client)
    - PEER_DISCONNECTED: transport lost the remote peer
    - RETURN_TO_MENU: explicit local action
    - HOST_FAILED: game port could not be bound
    - CONNECT_FAILED: connect error, timeout or handshake rejection
    """
    START_HOTSEAT = "START_HOTSEAT"
    HOST = "HOST"
    JOIN = "JOIN"
    SUBMIT_ADDRESS = "SUBMIT_ADDRESS"
    HOTSEAT_READY = "HOTSEAT_READY"
    PEER_CONNECTED = "PEER_CONNECTED"
    CONNECTION_ESTABLISHED = "CONNECTION_ESTABLISHED"
    WIN = "WIN"
    DRAW = "DRAW"
    PEER_DISCONNECTED = "PEER_DISCONNECTED"
    RETURN_TO_MENU = "RETURN_TO_MENU"
    HOST_FAILED = "HOST_FAILED"
    CONNECT_FAILED = "CONNECT_FAILED"
