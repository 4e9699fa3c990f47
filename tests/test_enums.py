# Area: Session Tests
"""Tests for session enums."""

from tictactoe_lan._session.enums import SessionEvent, SessionPhase


class TestSessionPhase:
    """Tests for SessionPhase."""

    def test_has_nine_phases(self):
        assert len(SessionPhase) == 9

    def test_terminal_phases(self):
        terminal = {p for p in SessionPhase if p.is_terminal}
        assert terminal == {SessionPhase.GAME_OVER, SessionPhase.DRAW, SessionPhase.DISCONNECTED}


class TestSessionEvent:
    """Tests for SessionEvent."""

    def test_values_match_names(self):
        for event in SessionEvent:
            assert event.value == event.name
