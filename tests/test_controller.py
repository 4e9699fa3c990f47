# Area: Session Tests
"""Tests for the game controller: hotseat and networked play over loopback."""

import socket
import time
from unittest.mock import Mock, patch

import pytest

from tictactoe_lan._session.controller import (
    ROLE_CLIENT,
    ROLE_HOST,
    ROLE_LOCAL,
    ROLE_NONE,
    GameController,
)
from tictactoe_lan._session.enums import SessionEvent, SessionPhase
from tictactoe_lan._shared.messages import PickRequest
from tictactoe_lan._shared.transport import ClientTransport
from tictactoe_lan.config import GameConfig
from tictactoe_lan.errors import HandshakeRejectedError, InvalidTransitionError, TransportError
from tictactoe_lan.types import HOST_PLAYER_ID, Outcome, RejectReason, Symbol


def make_config(**overrides) -> GameConfig:
    values = dict(
        listen_address="127.0.0.1",
        game_port=0,
        discovery_port=0,
        broadcast_address="127.0.0.1",
        log_file="",
    )
    values.update(overrides)
    return GameConfig(**values)


def run_until(condition, *controllers, timeout=3.0, extra=None):
    """Tick every controller until `condition()` holds."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        for controller in controllers:
            controller.tick()
        if extra is not None:
            extra()
        if condition():
            return True
        time.sleep(0.01)
    return False


def free_port():
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


@pytest.fixture
def controllers():
    made = []

    def factory(config=None, **kwargs):
        controller = GameController(config or make_config(), **kwargs)
        made.append(controller)
        return controller

    yield factory
    for controller in made:
        controller.shutdown()


def networked_pair(controllers):
    host = controllers()
    host.host_game()
    assert host.phase is SessionPhase.HOSTING_LOBBY
    client = controllers(make_config(game_port=host._host_transport.port,
                                     discovery_port=host._responder.port))
    client.join_game()
    assert client.submit_address("127.0.0.1")
    assert run_until(lambda: host.phase is SessionPhase.PLAYING
                     and client.phase is SessionPhase.PLAYING, host, client)
    return host, client


def host_pick_seen(host, client, cell):
    result = host.pick(cell)
    assert result.accepted
    assert run_until(lambda: client.board_snapshot().get(cell) is result.symbol, host, client)


def client_pick_seen(host, client, cell):
    client.pick(cell)
    assert run_until(lambda: host.board_snapshot().get(cell) is Symbol.NOUGHT
                     and client.board_snapshot().get(cell) is Symbol.NOUGHT, host, client)


class TestHotseat:
    """Tests for local two-player games."""

    def test_start_enters_playing(self, controllers):
        c = controllers()
        assert c.start_hotseat() is SessionPhase.PLAYING
        assert c.role == ROLE_LOCAL
        assert c.current_turn is Symbol.CROSS
        assert c.is_local_turn()
        assert c.local_symbols == [Symbol.CROSS, Symbol.NOUGHT]

    def test_scenario_a(self, controllers):
        c = controllers()
        c.start_hotseat()
        for cell in (0, 4, 1):
            assert c.pick(cell).accepted
        board = c.board_snapshot()
        assert board[0] is Symbol.CROSS and board[1] is Symbol.CROSS
        assert board[4] is Symbol.NOUGHT
        assert sum(1 for s in board.values() if s is not None) == 3
        assert c.current_turn is Symbol.NOUGHT
        assert c.phase is SessionPhase.PLAYING
        assert c.outcome is None

    def test_scenario_b_win(self, controllers):
        c = controllers()
        c.start_hotseat()
        for cell in (0, 3, 1, 4, 2):
            c.pick(cell)
        assert c.phase is SessionPhase.GAME_OVER
        assert c.outcome == Outcome.win(Symbol.CROSS)
        assert c.winner.symbol is Symbol.CROSS
        assert c.winner_id == HOST_PLAYER_ID
        # Final board stays visible after leaving Playing
        assert c.board_snapshot()[2] is Symbol.CROSS
        assert c.current_turn is None

    def test_scenario_c_draw(self, controllers):
        c = controllers()
        c.start_hotseat()
        for cell in (0, 1, 2, 4, 3, 5, 7, 6, 8):
            c.pick(cell)
        assert c.phase is SessionPhase.DRAW
        assert c.winner is None

    def test_rejected_pick_keeps_turn(self, controllers):
        c = controllers()
        c.start_hotseat()
        c.pick(0)
        result = c.pick(0)
        assert result.reason is RejectReason.OCCUPIED
        assert c.current_turn is Symbol.NOUGHT

    def test_pick_outside_playing_is_dropped(self, controllers):
        c = controllers()
        assert c.pick(0) is None
        c.start_hotseat()
        for cell in (0, 3, 1, 4, 2):
            c.pick(cell)
        assert c.pick(5) is None
        assert c.board_snapshot()[5] is None

    def test_new_session_starts_clean(self, controllers):
        c = controllers()
        c.start_hotseat()
        for cell in (0, 3, 1, 4, 2):
            c.pick(cell)
        c.return_to_menu()
        assert c.phase is SessionPhase.MAIN_MENU
        assert c.role == ROLE_NONE
        c.start_hotseat()
        assert c.current_turn is Symbol.CROSS
        assert c.winner is None
        assert all(s is None for s in c.board_snapshot().values())

    def test_phase_listener(self, controllers):
        c = controllers()
        listener = Mock()
        c.add_phase_listener(listener)
        c.start_hotseat()
        events = [call.args[2] for call in listener.call_args_list]
        assert events == [SessionEvent.START_HOTSEAT, SessionEvent.HOTSEAT_READY]

    def test_invalid_action_raises(self, controllers):
        c = controllers()
        c.start_hotseat()
        with pytest.raises(InvalidTransitionError):
            c.host_game()

    def test_view(self, controllers):
        c = controllers()
        c.start_hotseat()
        c.pick(4)
        view = c.view()
        assert view["phase"] == "playing"
        assert view["role"] == "local"
        assert view["turn"] == "nought"
        assert view["board"][4] == "cross"
        assert view["winner_id"] is None


class TestHosting:
    """Tests for host setup."""

    def test_bind_failure_returns_to_menu(self, controllers):
        blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        blocker.bind(("127.0.0.1", 0))
        blocker.listen(1)
        try:
            host = controllers(make_config(game_port=blocker.getsockname()[1]))
            assert host.host_game() is SessionPhase.MAIN_MENU
            assert isinstance(host.last_error, TransportError)
            assert host.role == ROLE_NONE
        finally:
            blocker.close()

    def test_lobby_runs_responder(self, controllers):
        host = controllers()
        host.host_game()
        assert host.role == ROLE_HOST
        assert host._responder.is_running
        host.return_to_menu()
        assert host._responder is None
        assert host._host_transport is None

    def test_discovery_finds_host(self, controllers):
        host = controllers()
        host.host_game()
        client = controllers(make_config(discovery_port=host._responder.port),
                             discovery_every_ticks=1)
        found = []
        client.add_host_listener(found.append)
        client.join_game()
        assert run_until(lambda: client.discovered_hosts, host, client)
        run_until(lambda: False, host, client, timeout=0.1)
        assert client.discovered_hosts == ["127.0.0.1"]
        assert found == ["127.0.0.1"]


class TestNetworkedGame:
    """Tests for host and client controllers talking over loopback."""

    def test_both_sides_enter_playing(self, controllers):
        host, client = networked_pair(controllers)
        assert host.role == ROLE_HOST and client.role == ROLE_CLIENT
        assert host.local_player_id == HOST_PLAYER_ID
        assert client.local_player_id not in (None, HOST_PLAYER_ID)
        assert client.local_symbols == [Symbol.NOUGHT]
        assert host.is_local_turn()
        assert not client.is_local_turn()
        # The responder stops once the client is in
        assert host._responder is None

    def test_host_pick_replicates(self, controllers):
        host, client = networked_pair(controllers)
        host_pick_seen(host, client, 0)
        assert client.current_turn is Symbol.NOUGHT
        assert client.is_local_turn()
        assert client.board_snapshot() == host.board_snapshot()

    def test_client_has_no_prediction(self, controllers):
        host, client = networked_pair(controllers)
        host_pick_seen(host, client, 0)
        assert client.pick(4) is None
        assert client.board_snapshot()[4] is None
        client_pick_seen(host, client, 4)
        assert host.current_turn is Symbol.CROSS

    def test_scenario_e_occupied_cell_from_client(self, controllers):
        host, client = networked_pair(controllers)
        host_pick_seen(host, client, 0)
        facts_before = len(host._log.facts)

        with patch.object(host._authority, "submit_pick",
                          wraps=host._authority.submit_pick) as spy:
            client.pick(0)
            assert run_until(lambda: spy.called, host, client)
            run_until(lambda: False, host, client, timeout=0.1)

        assert len(host._log.facts) == facts_before
        assert host.board_snapshot()[0] is Symbol.CROSS
        assert client.board_snapshot()[0] is Symbol.CROSS
        assert host.current_turn is Symbol.NOUGHT
        assert client.current_turn is Symbol.NOUGHT

    def test_full_game_ends_on_both_sides(self, controllers):
        host, client = networked_pair(controllers)
        host_pick_seen(host, client, 0)
        client_pick_seen(host, client, 3)
        host_pick_seen(host, client, 1)
        client_pick_seen(host, client, 4)
        host.pick(2)
        assert host.phase is SessionPhase.GAME_OVER
        assert run_until(lambda: client.phase is SessionPhase.GAME_OVER, host, client)
        assert client.winner_id == HOST_PLAYER_ID
        assert client.outcome == Outcome.win(Symbol.CROSS)
        assert client.board_snapshot() == host.board_snapshot()

    def test_client_leaving_disconnects_host(self, controllers):
        host, client = networked_pair(controllers)
        client.return_to_menu()
        assert client._client_transport is None
        assert run_until(lambda: host.phase is SessionPhase.DISCONNECTED, host)
        assert host.session.holder_of(Symbol.NOUGHT) is None
        assert [p.player_id for p in host.session.players] == [HOST_PLAYER_ID]

    def test_host_leaving_disconnects_client(self, controllers):
        host, client = networked_pair(controllers)
        host.return_to_menu()
        assert run_until(lambda: client.phase is SessionPhase.DISCONNECTED, client)
        assert client.session.holder_of(Symbol.CROSS) is None
        assert client.local_symbols == [Symbol.NOUGHT]

    def test_disconnect_after_game_over_keeps_phase(self, controllers):
        host, client = networked_pair(controllers)
        host_pick_seen(host, client, 0)
        client_pick_seen(host, client, 3)
        host_pick_seen(host, client, 1)
        client_pick_seen(host, client, 4)
        host.pick(2)
        assert run_until(lambda: client.phase is SessionPhase.GAME_OVER, host, client)
        client.return_to_menu()
        run_until(lambda: False, host, timeout=0.2)
        assert host.phase is SessionPhase.GAME_OVER

    def test_second_client_is_rejected(self, controllers):
        host, client = networked_pair(controllers)
        third = controllers(make_config(game_port=client.config.game_port))
        third.join_game()
        third.submit_address("127.0.0.1")
        assert run_until(lambda: third.phase is SessionPhase.CONNECT, host, client, third)
        assert isinstance(third.last_error, HandshakeRejectedError)
        assert host.phase is SessionPhase.PLAYING


class TestUntrustedClient:
    """Tests for the host against a hand-driven client transport."""

    def test_claimed_identity_must_match_connection(self, controllers):
        host = controllers()
        host.host_game()
        raw = ClientTransport("127.0.0.1", host._host_transport.port, client_id=55)
        raw.start()
        try:
            assert run_until(lambda: host.phase is SessionPhase.PLAYING and raw.is_connected,
                             host, extra=raw.poll)
            host.pick(0)
            raw.send(PickRequest(player_id=HOST_PLAYER_ID, cell_index=4))
            run_until(lambda: False, host, extra=raw.poll, timeout=0.2)
            assert host.board_snapshot()[4] is None

            raw.send(PickRequest(player_id=55, cell_index=4))
            assert run_until(lambda: host.board_snapshot()[4] is Symbol.NOUGHT,
                             host, extra=raw.poll)
        finally:
            raw.close()

    def test_out_of_range_request_is_rejected(self, controllers):
        host = controllers()
        host.host_game()
        raw = ClientTransport("127.0.0.1", host._host_transport.port, client_id=56)
        raw.start()
        try:
            assert run_until(lambda: host.phase is SessionPhase.PLAYING and raw.is_connected,
                             host, extra=raw.poll)
            host.pick(0)
            raw.send(PickRequest(player_id=56, cell_index=9))
            run_until(lambda: False, host, extra=raw.poll, timeout=0.2)
            assert host.current_turn is Symbol.NOUGHT
            assert host.phase is SessionPhase.PLAYING
        finally:
            raw.close()


class TestConnecting:
    """Tests for the client connect step."""

    def test_invalid_address_keeps_connect(self, controllers):
        client = controllers()
        client.join_game()
        assert client.submit_address("not-an-ip") is False
        assert client.phase is SessionPhase.CONNECT

    def test_refused_connection_returns_to_connect(self, controllers):
        client = controllers(make_config(game_port=free_port()))
        client.join_game()
        client.submit_address("127.0.0.1")
        assert run_until(lambda: client.phase is SessionPhase.CONNECT, client)
        assert isinstance(client.last_error, TransportError)

    def test_shutdown_releases_sockets(self, controllers):
        host, client = networked_pair(controllers)
        host.shutdown()
        client.shutdown()
        assert host._host_transport is None
        assert client._client_transport is None


def raw_client_game(controllers, client_id):
    """A hosting controller plus a hand-driven client that completed the handshake."""
    host = controllers()
    host.host_game()
    raw = ClientTransport("127.0.0.1", host._host_transport.port, client_id=client_id)
    raw.start()
    assert run_until(lambda: host.phase is SessionPhase.PLAYING and raw.is_connected,
                     host, extra=raw.poll)
    return host, raw


class TestLateAndHostileInput:
    """Tests for client input the host must drop without failing."""

    def test_pick_after_game_over_is_dropped(self, controllers):
        host, raw = raw_client_game(controllers, client_id=57)
        try:
            for host_cell, client_cell in ((0, 3), (1, 4)):
                assert host.pick(host_cell).accepted
                raw.send(PickRequest(player_id=57, cell_index=client_cell))
                assert run_until(lambda: host.board_snapshot()[client_cell] is Symbol.NOUGHT,
                                 host, extra=raw.poll)
            host.pick(2)
            assert host.phase is SessionPhase.GAME_OVER
            facts_after_game = len(host._log.facts)

            raw.send(PickRequest(player_id=57, cell_index=5))
            run_until(lambda: False, host, extra=raw.poll, timeout=0.3)

            assert host.phase is SessionPhase.GAME_OVER
            assert host.board_snapshot()[5] is None
            assert len(host._log.facts) == facts_after_game
        finally:
            raw.close()

    @pytest.mark.parametrize("frame", [
        b"[" * 60000 + b"\n",
        b'{"x": ' + b"1" * 5000 + b"}\n",
    ], ids=["deep-nesting", "huge-integer"])
    def test_unparsable_frame_in_lobby_does_not_escape_tick(self, controllers, frame):
        host = controllers()
        host.host_game()
        raw = socket.create_connection(("127.0.0.1", host._host_transport.port))
        try:
            raw.sendall(frame)
            run_until(lambda: False, host, timeout=0.3)
            assert host.phase is SessionPhase.HOSTING_LOBBY
            assert host._host_transport.accepting
        finally:
            raw.close()
