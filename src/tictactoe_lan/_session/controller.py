# Area: Session
"""
tictactoe_lan._session.controller - Game controller
===================================================

Coordinates the state machine, the session context, the turn authority,
the replication channel, the game transport and discovery. It is the
single surface a front end talks to: read the phase, turn, board and
winner; call `pick()` and the menu actions; call `tick()` once per loop
iteration.

Roles:
    local   hotseat, both players are the host identity
    host    authoritative; plays CROSS, the remote client plays NOUGHT
    client  read-only mirror; forwards picks, applies replicated facts
"""

import ipaddress
import logging
from typing import Callable, List, Optional

from .enums import SessionEvent, SessionPhase
from .state_machine import SessionStateMachine
from .._core.session import Session
from .._core.turn_authority import TurnAuthority
from .._shared.discovery import DiscoveryRequester, DiscoveryResponder
from .._shared.logging_config import log_structured_error
from .._shared.messages import MESSAGE_TYPES, Fact, GameEnded, PickRequest, PlayerJoined
from .._shared.protocol_logger import get_protocol_logger
from .._shared.replication import ReplicaMirror, ReplicationLog
from .._shared.transport import (
    ClientTransport,
    HostTransport,
    TransportEvent,
    TransportEventKind,
)
from ..config import GameConfig
from ..errors import HandshakeRejectedError, TicTacToeError, TransportError
from ..types import (
    HOST_PLAYER_ID,
    Outcome,
    PickResult,
    Player,
    SessionView,
    Symbol,
)

logger = logging.getLogger("tictactoe_lan.controller")

ROLE_NONE = "none"
ROLE_LOCAL = "local"
ROLE_HOST = "host"
ROLE_CLIENT = "client"

# Ticks between two discovery broadcasts
DISCOVERY_EVERY_TICKS = 10

HostListener = Callable[[str], None]


class GameController:
    """
    Drives one process's view of the game.

    Usage:
        controller = GameController(config)
        controller.host_game()
        while running:
            controller.tick()
        controller.shutdown()
    """

    def __init__(self, config: Optional[GameConfig] = None,
                 discovery_every_ticks: int = DISCOVERY_EVERY_TICKS):
        self.config = config or GameConfig()
        self.discovery_every_ticks = max(1, discovery_every_ticks)
        self.machine = SessionStateMachine()
        self.session: Optional[Session] = None
        self.role = ROLE_NONE
        self.local_player_id: Optional[int] = None
        self.target_address: Optional[str] = None
        self.last_error: Optional[TicTacToeError] = None

        self._authority: Optional[TurnAuthority] = None
        self._log: Optional[ReplicationLog] = None
        self._mirror: Optional[ReplicaMirror] = None
        self._host_transport: Optional[HostTransport] = None
        self._client_transport: Optional[ClientTransport] = None
        self._responder: Optional[DiscoveryResponder] = None
        self._requester: Optional[DiscoveryRequester] = None
        self._client_connected = False
        self._final_board: dict = {}
        self._discovery_ticks = 0
        self._host_listeners: List[HostListener] = []
        self._protocol_logger = get_protocol_logger()

        self._register_hooks()

    def _register_hooks(self) -> None:
        m = self.machine
        m.on_enter(SessionPhase.MAIN_MENU, self._teardown)
        m.on_enter(SessionPhase.HOTSEAT, self._enter_hotseat)
        m.on_enter(SessionPhase.HOSTING_LOBBY, self._enter_hosting_lobby)
        m.on_exit(SessionPhase.HOSTING_LOBBY, self._stop_responder)
        m.on_enter(SessionPhase.CONNECT, self._enter_connect)
        m.on_exit(SessionPhase.CONNECT, self._stop_requester)
        m.on_enter(SessionPhase.WAITING_CONNECTION, self._enter_waiting_connection)
        m.on_enter(SessionPhase.PLAYING, self._enter_playing)
        m.on_exit(SessionPhase.PLAYING, self._exit_playing)
        m.on_enter(SessionPhase.DISCONNECTED, self._close_transports)

    # ── Listeners ────────────────────────────────────────────

    def add_phase_listener(self, listener) -> None:
        """Register callback(old_phase, new_phase, event)."""
        self.machine.add_listener(listener)

    def add_host_listener(self, listener: HostListener) -> None:
        """Register callback(address) for each newly discovered host."""
        self._host_listeners.append(listener)

    # ── State surface ────────────────────────────────────────

    @property
    def phase(self) -> SessionPhase:
        return self.machine.current_phase

    @property
    def current_turn(self) -> Optional[Symbol]:
        return self.session.turn if self.session is not None else None

    def board_snapshot(self) -> dict:
        """Cell index -> Symbol or None; the final board once play has ended."""
        if self.session is not None and self.session.board is not None:
            return self.session.board_snapshot()
        return dict(self._final_board)

    @property
    def winner(self) -> Optional[Player]:
        return self.session.winner if self.session is not None else None

    @property
    def winner_id(self) -> Optional[int]:
        return self.winner.player_id if self.winner is not None else None

    @property
    def outcome(self) -> Optional[Outcome]:
        return self.session.outcome if self.session is not None else None

    @property
    def discovered_hosts(self) -> List[str]:
        return list(self._requester.servers) if self._requester is not None else []

    @property
    def local_symbols(self) -> List[Symbol]:
        if self.session is None or self.local_player_id is None:
            return []
        return self.session.symbols_of(self.local_player_id)

    def is_local_turn(self) -> bool:
        if self.phase is not SessionPhase.PLAYING or self.session is None:
            return False
        if self.role == ROLE_LOCAL:
            return True
        return self.local_player_id is not None and self.session.holds_turn(self.local_player_id)

    def view(self) -> SessionView:
        winner = self.winner
        return SessionView(
            phase=self.phase.value,
            role=self.role,
            turn=self.current_turn.value if self.current_turn else None,
            board={i: (s.value if s else None) for i, s in self.board_snapshot().items()},
            winner_id=winner.player_id if winner else None,
            winner_symbol=winner.symbol.value if winner else None,
            local_player_id=self.local_player_id,
            discovered_hosts=self.discovered_hosts,
        )

    # ── Actions ──────────────────────────────────────────────

    def start_hotseat(self) -> SessionPhase:
        self.last_error = None
        return self.machine.transition(SessionEvent.START_HOTSEAT)

    def host_game(self) -> SessionPhase:
        self.last_error = None
        return self.machine.transition(SessionEvent.HOST)

    def join_game(self) -> SessionPhase:
        self.last_error = None
        return self.machine.transition(SessionEvent.JOIN)

    def submit_address(self, address: str) -> bool:
        """
        Connect to `address` (IPv4). Only valid in CONNECT.

        Returns:
            False if the address does not parse; the phase is unchanged
        """
        try:
            ipaddress.IPv4Address(address.strip())
        except ValueError:
            logger.warning(f"not a valid host address: {address!r}")
            return False
        self.target_address = address.strip()
        self.last_error = None
        self.machine.transition(SessionEvent.SUBMIT_ADDRESS)
        return True

    def return_to_menu(self) -> SessionPhase:
        return self.machine.transition(SessionEvent.RETURN_TO_MENU)

    def pick(self, cell_index: object) -> Optional[PickResult]:
        """
        Pick a cell as the local player.

        Host and hotseat picks go through the turn authority exactly like
        remote ones. A client forwards the request and returns None; its
        board changes only when the host replicates the result.
        """
        if self.phase is not SessionPhase.PLAYING:
            logger.debug(f"pick {cell_index!r} dropped outside playing ({self.phase.value})")
            return None

        if self.role == ROLE_CLIENT:
            if not isinstance(cell_index, int) or isinstance(cell_index, bool):
                logger.debug(f"not forwarding invalid cell index {cell_index!r}")
                return None
            request = PickRequest(player_id=self.local_player_id, cell_index=cell_index)
            if self._client_transport is not None and self._client_transport.send(request):
                self._protocol_logger.log_sent("host", "PICK_REQUEST")
            return None

        result = self._authority.submit_pick(HOST_PLAYER_ID, cell_index)
        self._after_pick(result)
        return result

    def tick(self) -> None:
        """Poll discovery and transport once. Never blocks."""
        if self._responder is not None:
            self._responder.poll()
        if self._requester is not None:
            if self._discovery_ticks % self.discovery_every_ticks == 0:
                self._requester.send_request()
            self._discovery_ticks += 1
            self._requester.collect()
        if self._host_transport is not None:
            for event in self._host_transport.poll():
                self._handle_host_event(event)
        if self._client_transport is not None:
            for event in self._client_transport.poll():
                self._handle_client_event(event)
        self._publish_facts()

    def shutdown(self) -> None:
        """Release every socket regardless of phase."""
        self._teardown()

    # ── Phase hooks ──────────────────────────────────────────

    def _new_session(self, role: str, local_player_id: Optional[int]) -> Session:
        self.session = Session()
        self.role = role
        self.local_player_id = local_player_id
        self._final_board = {}
        self._protocol_logger.set_session(self.session.session_id, role)
        return self.session

    def _enter_hotseat(self) -> None:
        session = self._new_session(ROLE_LOCAL, HOST_PLAYER_ID)
        session.add_player(Player(HOST_PLAYER_ID, Symbol.CROSS))
        session.add_player(Player(HOST_PLAYER_ID, Symbol.NOUGHT))
        self.machine.transition(SessionEvent.HOTSEAT_READY)

    def _enter_hosting_lobby(self) -> None:
        session = self._new_session(ROLE_HOST, HOST_PLAYER_ID)
        self._log = ReplicationLog()
        host = Player(HOST_PLAYER_ID, Symbol.CROSS)
        session.add_player(host)
        self._log.player_joined(host)

        transport = HostTransport(self.config.listen_address, self.config.game_port)
        try:
            transport.start()
        except TransportError as e:
            self.last_error = e
            log_structured_error(e)
            self.machine.transition(SessionEvent.HOST_FAILED)
            return
        self._host_transport = transport

        self._responder = DiscoveryResponder(port=self.config.discovery_port)
        self._responder.start()

    def _stop_responder(self) -> None:
        if self._responder is not None:
            self._responder.stop()
            self._responder = None

    def _enter_connect(self) -> None:
        self._close_transports()
        self._new_session(ROLE_CLIENT, None)
        self._requester = DiscoveryRequester(
            broadcast_address=self.config.broadcast_address,
            port=self.config.discovery_port,
            on_discovered=self._on_host_discovered,
        )
        self._discovery_ticks = 0
        self._requester.start()

    def _stop_requester(self) -> None:
        if self._requester is not None:
            self._requester.stop()
            self._requester = None

    def _on_host_discovered(self, address: str) -> None:
        for listener in self._host_listeners:
            listener(address)

    def _enter_waiting_connection(self) -> None:
        self._mirror = ReplicaMirror(self.session)
        self._client_connected = False
        transport = ClientTransport(self.target_address, self.config.game_port)
        try:
            transport.start()
        except TransportError as e:
            self.last_error = e
            log_structured_error(e)
            self.machine.transition(SessionEvent.CONNECT_FAILED)
            return
        self._client_transport = transport
        self.local_player_id = transport.client_id
        logger.info(f"Connecting to server @ {self.target_address}:{self.config.game_port}")

    def _enter_playing(self) -> None:
        self.session.start_board()
        if self.role != ROLE_CLIENT:
            self._authority = TurnAuthority(self.session, sink=self._log)

    def _exit_playing(self) -> None:
        self._final_board = self.session.board_snapshot()
        self._authority = None
        self.session.end_board()

    def _close_transports(self) -> None:
        self._publish_facts()
        if self._host_transport is not None:
            self._host_transport.close()
            self._host_transport = None
        if self._client_transport is not None:
            self._client_transport.close()
            self._client_transport = None
        self._client_connected = False

    def _teardown(self) -> None:
        self._close_transports()
        self._stop_responder()
        self._stop_requester()
        self._authority = None
        self._log = None
        self._mirror = None
        if self.session is not None:
            if self.session.board is not None:
                self.session.end_board()
            self.session.clear_players()
        self.role = ROLE_NONE
        self.local_player_id = None

    # ── Host side ────────────────────────────────────────────

    def _handle_host_event(self, event: TransportEvent) -> None:
        if event.kind is TransportEventKind.CONNECTED:
            self._on_peer_connected(event.peer_id)
        elif event.kind is TransportEventKind.DISCONNECTED:
            self._on_peer_lost(event.peer_id, event.reason)
        elif event.kind is TransportEventKind.MESSAGE:
            self._on_host_message(event)

    def _on_peer_connected(self, peer_id: int) -> None:
        self._host_transport.accepting = False
        if self.phase is not SessionPhase.HOSTING_LOBBY:
            logger.warning(f"client {peer_id} connected outside the lobby, ignoring")
            return
        client = Player(peer_id, Symbol.NOUGHT)
        self.session.add_player(client)
        self._log.player_joined(client)
        self._log.rewind()
        self.machine.transition(SessionEvent.PEER_CONNECTED)

    def _on_peer_lost(self, peer_id: Optional[int], reason: str) -> None:
        if self.session is not None and peer_id is not None:
            self.session.remove_player(peer_id)
        if self.machine.can_transition(SessionEvent.PEER_DISCONNECTED):
            logger.warning(f"peer {peer_id} disconnected: {reason}")
            self.machine.transition(SessionEvent.PEER_DISCONNECTED)
        else:
            logger.info(f"peer {peer_id} disconnected in {self.phase.value}")

    def _on_host_message(self, event: TransportEvent) -> None:
        payload = event.payload
        if not isinstance(payload, PickRequest):
            logger.debug(f"ignoring {type(payload).__name__} from client {event.peer_id}")
            return
        self._protocol_logger.log_received(f"client {event.peer_id}", "PICK_REQUEST")
        if self.phase is not SessionPhase.PLAYING or self._authority is None:
            logger.debug(f"pick from {event.peer_id} dropped in {self.phase.value}")
            return
        if payload.player_id != event.peer_id:
            logger.warning(
                f"client {event.peer_id} claimed to be player {payload.player_id}, dropping pick"
            )
            return
        result = self._authority.submit_pick(event.peer_id, payload.cell_index)
        self._after_pick(result)

    def _after_pick(self, result: PickResult) -> None:
        self._publish_facts()
        if not result.accepted or result.outcome is None:
            return
        if result.outcome.is_win:
            self.machine.transition(SessionEvent.WIN)
        else:
            self.machine.transition(SessionEvent.DRAW)

    def _publish_facts(self) -> None:
        if self._log is None:
            return
        facts = self._log.drain()
        if self._host_transport is None:
            return
        for fact in facts:
            sent = self._host_transport.broadcast(fact)
            if sent:
                self._protocol_logger.log_sent(
                    "client", MESSAGE_TYPES[type(fact)], fact.seq
                )
        self._host_transport.flush()

    # ── Client side ──────────────────────────────────────────

    def _handle_client_event(self, event: TransportEvent) -> None:
        kind = event.kind
        if kind is TransportEventKind.CONNECTED:
            self._client_connected = True
            self._maybe_start_client_game()
        elif kind is TransportEventKind.REJECTED:
            self.last_error = HandshakeRejectedError(event.reason)
            logger.warning(str(self.last_error))
            self._client_transport = None
            if self.machine.can_transition(SessionEvent.CONNECT_FAILED):
                self.machine.transition(SessionEvent.CONNECT_FAILED)
        elif kind is TransportEventKind.DISCONNECTED:
            self._client_transport = None
            if self.phase is SessionPhase.WAITING_CONNECTION:
                self.last_error = TransportError(
                    "connect", (self.target_address, self.config.game_port), OSError(event.reason)
                )
                logger.warning(f"could not connect to {self.target_address}: {event.reason}")
                self.machine.transition(SessionEvent.CONNECT_FAILED)
            else:
                self._on_peer_lost(HOST_PLAYER_ID, event.reason)
        elif kind is TransportEventKind.MESSAGE and isinstance(event.payload, Fact):
            self._apply_fact(event.payload)

    def _apply_fact(self, fact: Fact) -> None:
        self._protocol_logger.log_received("host", MESSAGE_TYPES[type(fact)], fact.seq)
        if self._mirror is None or self._mirror.apply(fact) is None:
            return
        if isinstance(fact, PlayerJoined):
            self._maybe_start_client_game()
        elif isinstance(fact, GameEnded) and self.phase is SessionPhase.PLAYING:
            event = SessionEvent.WIN if fact.outcome == "win" else SessionEvent.DRAW
            self.machine.transition(event)

    def _maybe_start_client_game(self) -> None:
        if self.phase is not SessionPhase.WAITING_CONNECTION or not self._client_connected:
            return
        if len(self.session.players) < 2:
            return
        self.machine.transition(SessionEvent.CONNECTION_ESTABLISHED)

