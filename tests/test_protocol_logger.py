# Area: Shared Tests
"""Tests for protocol logger."""

from tictactoe_lan._shared.protocol_logger import (
    DISPLAY_NAMES,
    GREEN,
    ORANGE,
    RED,
    RESET,
    ProtocolLogger,
    get_protocol_logger,
)
from tictactoe_lan._shared.messages import PAYLOAD_MODELS


class TestDisplayNames:
    """Tests for message type → display name mappings."""

    def test_replicated_types_have_names(self):
        for name in ("PLAYER_JOINED", "CELL_OCCUPIED", "GAME_ENDED", "PICK_REQUEST"):
            assert name in PAYLOAD_MODELS
            assert name in DISPLAY_NAMES


class TestProtocolLogger:
    """Tests for ProtocolLogger class."""

    def test_disabled_prints_nothing(self, capsys):
        logger = ProtocolLogger()
        logger.log_sent("client", "CELL_OCCUPIED", 3)
        logger.log_received("host", "CELL_OCCUPIED", 3)
        logger.log_error("oops")
        captured = capsys.readouterr()
        assert captured.out == "" and captured.err == ""

    def test_sent_fact_line(self, capsys):
        logger = ProtocolLogger(enabled=True)
        logger.set_session("abcd1234", "host")
        logger.log_sent("client", "CELL_OCCUPIED", 3)
        out = capsys.readouterr().out
        assert out.startswith(GREEN)
        assert out.rstrip().endswith(RESET)
        assert "SESSION: abcd1234" in out
        assert "SENT" in out
        assert "to client" in out
        assert "CELL-OCCUPIED" in out
        assert "#3" in out
        assert "ROLE: HOST" in out

    def test_pick_request_is_orange(self, capsys):
        logger = ProtocolLogger(enabled=True)
        logger.log_received("client 7", "PICK_REQUEST")
        out = capsys.readouterr().out
        assert out.startswith(ORANGE)
        assert "from client 7" in out
        assert "PICK" in out
        assert "SEQ: -" in out

    def test_unknown_type_passes_through(self, capsys):
        logger = ProtocolLogger(enabled=True)
        logger.log_received("host", "SOMETHING_ELSE")
        assert "SOMETHING_ELSE" in capsys.readouterr().out

    def test_error_goes_to_stderr(self, capsys):
        logger = ProtocolLogger(enabled=True)
        logger.log_error("frame dropped")
        err = capsys.readouterr().err
        assert err.startswith(RED)
        assert "frame dropped" in err

    def test_empty_session_id(self, capsys):
        logger = ProtocolLogger(enabled=True)
        logger.set_session("", "client")
        logger.log_sent("host", "PICK_REQUEST")
        assert "SESSION: --------" in capsys.readouterr().out


class TestSingleton:
    """Tests for get_protocol_logger()."""

    def test_same_instance(self):
        assert get_protocol_logger() is get_protocol_logger()
