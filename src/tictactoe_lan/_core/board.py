# Area: Core
"""
tictactoe_lan._core.board - Board model
=======================================

Canonical cell occupancy for one session plus the win geometry of the
grid. Cells are addressed by a flat index 0..N*N-1, row-major.

Once a cell holds a symbol it never reverts to empty and never changes
symbol; `occupy()` enforces this.
"""

from __future__ import annotations
from functools import lru_cache
from typing import Dict, Iterator, List, Optional, Tuple

from ..config import GRID_SIZE
from ..errors import CellOccupiedError
from ..types import Symbol


@lru_cache(maxsize=None)
def winning_lines(size: int = GRID_SIZE) -> Tuple[Tuple[int, ...], ...]:
    """
    Every straight line of `size` cells, in a fixed order.

    Rows top to bottom, then columns left to right, then the main
    diagonal, then the anti-diagonal. For a 3x3 grid this yields the
    classic 8 triples.
    """
    rows = [tuple(row * size + col for col in range(size)) for row in range(size)]
    cols = [tuple(row * size + col for row in range(size)) for col in range(size)]
    main_diagonal = tuple(i * size + i for i in range(size))
    anti_diagonal = tuple(i * size + (size - 1 - i) for i in range(size))
    return tuple(rows + cols + [main_diagonal, anti_diagonal])


class Board:
    """
    Cell occupancy for one session.

    Attributes:
        size: Board dimension N
        cell_count: N * N
    """

    def __init__(self, size: int = GRID_SIZE):
        self.size = size
        self.cell_count = size * size
        self._cells: List[Optional[Symbol]] = [None] * self.cell_count

    def in_range(self, index: object) -> bool:
        """True if `index` is an int addressing a cell of this board."""
        # bool is an int subclass but never a cell index
        if isinstance(index, bool) or not isinstance(index, int):
            return False
        return 0 <= index < self.cell_count

    def get(self, index: int) -> Optional[Symbol]:
        return self._cells[index]

    def is_empty(self, index: int) -> bool:
        return self._cells[index] is None

    def occupy(self, index: int, symbol: Symbol) -> None:
        """
        Bind a symbol to an empty cell.

        Raises:
            IndexError: If the index is outside the board
            CellOccupiedError: If the cell already holds a symbol
        """
        if not self.in_range(index):
            raise IndexError(f"Cell index {index!r} outside 0..{self.cell_count - 1}")
        occupant = self._cells[index]
        if occupant is not None:
            raise CellOccupiedError(index, occupant)
        self._cells[index] = symbol

    def is_full(self) -> bool:
        return all(cell is not None for cell in self._cells)

    def empty_cells(self) -> List[int]:
        return [i for i, cell in enumerate(self._cells) if cell is None]

    def occupied_count(self) -> int:
        return sum(1 for cell in self._cells if cell is not None)

    def snapshot(self) -> Dict[int, Optional[Symbol]]:
        """Mapping of every cell index to its occupant (or None)."""
        return dict(enumerate(self._cells))

    def lines(self) -> Iterator[Tuple[Optional[Symbol], ...]]:
        """Occupants along each winning line, in `winning_lines()` order."""
        for line in winning_lines(self.size):
            yield tuple(self._cells[i] for i in line)

    def __repr__(self) -> str:
        marks = "".join(c.glyph if c else "." for c in self._cells)
        return f"Board(size={self.size}, cells='{marks}')"
