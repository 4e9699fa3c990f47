# Area: Core Tests
"""Tests for the board model and win geometry."""

import pytest

from tictactoe_lan._core.board import Board, winning_lines
from tictactoe_lan.errors import CellOccupiedError
from tictactoe_lan.types import Symbol


class TestWinningLines:
    """Tests for winning_lines()."""

    def test_three_by_three_has_eight_lines(self):
        assert len(winning_lines(3)) == 8

    def test_line_order_is_fixed(self):
        assert winning_lines(3) == (
            (0, 1, 2), (3, 4, 5), (6, 7, 8),
            (0, 3, 6), (1, 4, 7), (2, 5, 8),
            (0, 4, 8), (2, 4, 6),
        )

    def test_generalizes_to_four_by_four(self):
        lines = winning_lines(4)
        assert len(lines) == 10
        assert (0, 5, 10, 15) in lines
        assert (3, 6, 9, 12) in lines


class TestBoard:
    """Tests for Board."""

    def test_new_board_is_empty(self):
        board = Board()
        assert board.cell_count == 9
        assert board.empty_cells() == list(range(9))
        assert board.occupied_count() == 0
        assert not board.is_full()

    def test_snapshot_covers_every_cell(self):
        board = Board()
        board.occupy(4, Symbol.CROSS)
        snapshot = board.snapshot()
        assert set(snapshot) == set(range(9))
        assert snapshot[4] is Symbol.CROSS
        assert snapshot[0] is None

    def test_in_range_uses_strict_upper_bound(self):
        board = Board()
        assert board.in_range(0)
        assert board.in_range(8)
        assert not board.in_range(9)
        assert not board.in_range(-1)

    @pytest.mark.parametrize("value", [True, False, "4", 4.0, None])
    def test_in_range_rejects_non_int(self, value):
        assert not Board().in_range(value)

    def test_occupied_cell_never_changes(self):
        board = Board()
        board.occupy(0, Symbol.CROSS)
        with pytest.raises(CellOccupiedError) as exc_info:
            board.occupy(0, Symbol.NOUGHT)
        assert exc_info.value.occupant is Symbol.CROSS
        assert board.get(0) is Symbol.CROSS

    def test_occupy_out_of_range_raises(self):
        with pytest.raises(IndexError):
            Board().occupy(9, Symbol.CROSS)

    def test_full_board(self):
        board = Board()
        for i in range(9):
            board.occupy(i, Symbol.CROSS if i % 2 else Symbol.NOUGHT)
        assert board.is_full()
        assert board.empty_cells() == []

    def test_lines_follow_winning_lines(self):
        board = Board()
        board.occupy(0, Symbol.CROSS)
        first = next(board.lines())
        assert first == (Symbol.CROSS, None, None)

    def test_repr_shows_marks(self):
        board = Board()
        board.occupy(0, Symbol.CROSS)
        board.occupy(4, Symbol.NOUGHT)
        assert repr(board) == "Board(size=3, cells='X...O....')"
