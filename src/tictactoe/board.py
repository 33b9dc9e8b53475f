"""The Board holds the 3x3 grid of cells and implements the rules that only depend on the marks placed on it."""

from dataclasses import dataclass, field
from typing import Optional, Self

from src.core.exceptions import InvalidCellError
from src.core.shared_types import Symbol

BOARD_SIZE = 9

# rows, columns, diagonals
WINNING_LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


def check_winner(cells: list[Optional[Symbol]]) -> Optional[Symbol]:
    """
    Symbol holding one of the 8 winning lines, if any.
    ----
    A move places a single mark, so at most one symbol can own a line after it. The first line found is returned.
    """
    for a, b, c in WINNING_LINES:
        if cells[a] is not None and cells[a] == cells[b] == cells[c]:
            return cells[a]
    return None


@dataclass
class Board:
    cells: list[Optional[Symbol]] = field(default_factory=lambda: [None] * BOARD_SIZE)

    @classmethod
    def from_cells(cls, cells: list[Optional[str]]) -> Self:
        """Build a board from its serialized form ("X", "O" or None per cell)."""
        if len(cells) != BOARD_SIZE:
            raise ValueError(f"A board has {BOARD_SIZE} cells, got {len(cells)}.")
        return cls([Symbol(cell) if cell else None for cell in cells])

    def to_cells(self) -> list[Optional[str]]:
        return [str(cell) if cell is not None else None for cell in self.cells]

    def mark(self, index: int) -> Optional[Symbol]:
        self._assert_on_board(index)
        return self.cells[index]

    def is_empty(self, index: int) -> bool:
        return self.mark(index) is None

    def place(self, index: int, symbol: Symbol) -> None:
        self._assert_on_board(index)
        self.cells[index] = symbol

    def clear(self, index: int) -> None:
        self._assert_on_board(index)
        self.cells[index] = None

    def occupied_count(self) -> int:
        return sum(1 for cell in self.cells if cell is not None)

    def is_full(self) -> bool:
        return all(cell is not None for cell in self.cells)

    def winner(self) -> Optional[Symbol]:
        return check_winner(self.cells)

    @staticmethod
    def _assert_on_board(index: int) -> None:
        if not 0 <= index < BOARD_SIZE:
            raise InvalidCellError(
                f"Cell index {index} is not on the board (0..{BOARD_SIZE - 1})."
            )
