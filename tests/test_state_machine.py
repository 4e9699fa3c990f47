# Area: Session Tests
"""Tests for the Session State Machine."""

from unittest.mock import Mock

import pytest

from tictactoe_lan._session.enums import SessionEvent, SessionPhase
from tictactoe_lan._session.state_machine import TRANSITIONS, SessionStateMachine
from tictactoe_lan.errors import InvalidTransitionError


class TestSessionStateMachineBase:
    """Tests for basic state machine functionality."""

    def test_initial_phase_is_main_menu(self):
        assert SessionStateMachine().current_phase is SessionPhase.MAIN_MENU

    def test_can_transition(self):
        sm = SessionStateMachine()
        assert sm.can_transition(SessionEvent.HOST) is True
        assert sm.can_transition(SessionEvent.WIN) is False

    def test_invalid_transition_raises_value_error(self):
        sm = SessionStateMachine()
        with pytest.raises(ValueError):
            sm.transition(SessionEvent.WIN)
        with pytest.raises(InvalidTransitionError) as exc_info:
            sm.transition(SessionEvent.RETURN_TO_MENU)
        assert exc_info.value.phase == "main_menu"

    def test_every_phase_has_an_entry(self):
        assert set(TRANSITIONS) == set(SessionPhase)


class TestSessionStateMachineTransitions:
    """Tests for specific transitions."""

    def test_host_path(self):
        sm = SessionStateMachine()
        sm.transition(SessionEvent.HOST)
        assert sm.current_phase is SessionPhase.HOSTING_LOBBY
        sm.transition(SessionEvent.PEER_CONNECTED)
        assert sm.current_phase is SessionPhase.PLAYING
        sm.transition(SessionEvent.WIN)
        assert sm.current_phase is SessionPhase.GAME_OVER
        sm.transition(SessionEvent.RETURN_TO_MENU)
        assert sm.current_phase is SessionPhase.MAIN_MENU

    def test_client_path_with_failure(self):
        sm = SessionStateMachine()
        sm.transition(SessionEvent.JOIN)
        sm.transition(SessionEvent.SUBMIT_ADDRESS)
        assert sm.current_phase is SessionPhase.WAITING_CONNECTION
        sm.transition(SessionEvent.CONNECT_FAILED)
        assert sm.current_phase is SessionPhase.CONNECT
        sm.transition(SessionEvent.SUBMIT_ADDRESS)
        sm.transition(SessionEvent.CONNECTION_ESTABLISHED)
        sm.transition(SessionEvent.PEER_DISCONNECTED)
        assert sm.current_phase is SessionPhase.DISCONNECTED

    def test_hotseat_draw(self):
        sm = SessionStateMachine()
        sm.transition(SessionEvent.START_HOTSEAT)
        sm.transition(SessionEvent.HOTSEAT_READY)
        sm.transition(SessionEvent.DRAW)
        assert sm.current_phase is SessionPhase.DRAW

    @pytest.mark.parametrize("phase", [p for p in SessionPhase if p is not SessionPhase.MAIN_MENU])
    def test_return_to_menu_from_every_phase(self, phase):
        assert TRANSITIONS[phase][SessionEvent.RETURN_TO_MENU] is SessionPhase.MAIN_MENU

    @pytest.mark.parametrize("phase", [SessionPhase.GAME_OVER, SessionPhase.DRAW,
                                       SessionPhase.DISCONNECTED])
    def test_terminal_phases_only_leave_to_menu(self, phase):
        assert phase.is_terminal
        assert list(TRANSITIONS[phase]) == [SessionEvent.RETURN_TO_MENU]

    def test_disconnect_after_game_over_is_invalid(self):
        sm = SessionStateMachine()
        sm.transition(SessionEvent.START_HOTSEAT)
        sm.transition(SessionEvent.HOTSEAT_READY)
        sm.transition(SessionEvent.WIN)
        assert not sm.can_transition(SessionEvent.PEER_DISCONNECTED)


class TestHooks:
    """Tests for enter/exit hooks and listeners."""

    def test_exit_runs_before_enter(self):
        sm = SessionStateMachine()
        calls = []
        sm.on_exit(SessionPhase.MAIN_MENU, lambda: calls.append("exit menu"))
        sm.on_enter(SessionPhase.HOSTING_LOBBY, lambda: calls.append("enter lobby"))
        sm.transition(SessionEvent.HOST)
        assert calls == ["exit menu", "enter lobby"]

    def test_listener_receives_old_new_event(self):
        sm = SessionStateMachine()
        listener = Mock()
        sm.add_listener(listener)
        sm.transition(SessionEvent.JOIN)
        listener.assert_called_once_with(SessionPhase.MAIN_MENU, SessionPhase.CONNECT,
                                         SessionEvent.JOIN)

    def test_transition_from_hook_is_queued(self):
        sm = SessionStateMachine()
        seen = []

        def enter_hotseat():
            sm.transition(SessionEvent.HOTSEAT_READY)
            seen.append(sm.current_phase)

        sm.on_enter(SessionPhase.HOTSEAT, enter_hotseat)
        result = sm.transition(SessionEvent.START_HOTSEAT)
        assert seen == [SessionPhase.HOTSEAT]
        assert result is SessionPhase.PLAYING

    def test_invalid_queued_event_is_dropped(self):
        sm = SessionStateMachine()
        sm.on_enter(SessionPhase.CONNECT, lambda: sm.transition(SessionEvent.WIN))
        assert sm.transition(SessionEvent.JOIN) is SessionPhase.CONNECT

    def test_failing_setup_falls_back(self):
        sm = SessionStateMachine()
        entered_menu = Mock()
        sm.on_enter(SessionPhase.HOSTING_LOBBY, lambda: sm.transition(SessionEvent.HOST_FAILED))
        sm.on_enter(SessionPhase.MAIN_MENU, entered_menu)
        assert sm.transition(SessionEvent.HOST) is SessionPhase.MAIN_MENU
        entered_menu.assert_called_once()
