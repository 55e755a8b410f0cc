"""Board state and rules for N-dimensional tic-tac-toe."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .errors import IllegalMove, IndexOutOfRange
from .grid import Grid
from .lines import Line

logger = logging.getLogger(__name__)

Mark = str  # "X" or "O"
MARKS: Tuple[Mark, Mark] = ("X", "O")


def opponent(mark: Mark) -> Mark:
    return "O" if mark == "X" else "X"


def validate_mark(mark: object) -> Mark:
    if mark not in MARKS:
        raise IllegalMove(f"Unknown mark {mark!r}; expected 'X' or 'O'")
    return mark  # type: ignore[return-value]


class Status(str, Enum):
    ACTIVE = "active"
    WON = "won"
    DRAWN = "drawn"


@dataclass(frozen=True)
class MoveResult:
    status: Status
    mark: Optional[Mark] = None
    winning_line: Optional[Line] = None


# ---------- Board ----------


@dataclass
class Board:
    """Cell occupancy for one grid plus the mark whose turn it is.

    Status, winner and draw are derived from the cells on every access, so a
    board being explored by the search engine never carries stale results.
    """

    grid: Grid
    cells: List[Optional[Mark]] = field(default_factory=list)
    current_mark: Mark = "X"

    def __post_init__(self) -> None:
        if not self.cells:
            self.cells = [None] * self.grid.total_cells
        elif len(self.cells) != self.grid.total_cells:
            raise ValueError(
                f"Expected {self.grid.total_cells} cells, got {len(self.cells)}"
            )
        validate_mark(self.current_mark)

    # ---- rules ----

    def check_winner(self) -> Optional[Tuple[Mark, Line]]:
        """First fully-marked line in generation order, with its mark."""
        cells = self.cells
        for line in self.grid.winning_lines:
            first = cells[line[0]]
            if first is not None and all(cells[i] == first for i in line):
                return first, line
        return None

    def line_completed_at(self, index: int) -> Optional[Line]:
        """A line through ``index`` fully held by the mark sitting there."""
        mark = self.cells[index]
        if mark is None:
            return None
        for line in self.grid.lines_through(index):
            if all(self.cells[i] == mark for i in line):
                return line
        return None

    def is_full(self) -> bool:
        return all(c is not None for c in self.cells)

    def is_draw(self) -> bool:
        return self.is_full() and self.check_winner() is None

    @property
    def status(self) -> Status:
        if self.check_winner() is not None:
            return Status.WON
        if self.is_full():
            return Status.DRAWN
        return Status.ACTIVE

    @property
    def winner(self) -> Optional[Mark]:
        found = self.check_winner()
        return found[0] if found else None

    @property
    def winning_line(self) -> Optional[Line]:
        found = self.check_winner()
        return found[1] if found else None

    def is_terminal(self) -> bool:
        return self.status is not Status.ACTIVE

    def legal_moves(self) -> List[int]:
        if self.is_terminal():
            return []
        return self.open_moves()

    def open_moves(self) -> List[int]:
        """Empty cells, without checking whether the game is already over."""
        return [i for i, c in enumerate(self.cells) if c is None]

    def is_legal(self, index: int, mark: Optional[Mark] = None) -> bool:
        try:
            self._check_move(index, mark)
        except (IllegalMove, IndexOutOfRange):
            return False
        return True

    def apply_move(self, index: int, mark: Optional[Mark] = None) -> MoveResult:
        """Mark ``index`` and report the resulting status.

        On a plain board the caller owns turn order: any mark is accepted and
        the turn passes to the other mark.  Nothing changes when the move is
        rejected.
        """
        mark = self._check_move(index, mark)
        self.cells[index] = mark
        self.current_mark = opponent(mark)
        logger.debug("%s played %d on %r", mark, index, self.grid)

        found = self.check_winner()
        if found is not None:
            logger.debug("%s completed line %s", found[0], found[1])
            return MoveResult(Status.WON, found[0], found[1])
        if self.is_full():
            return MoveResult(Status.DRAWN)
        return MoveResult(Status.ACTIVE)

    def _check_move(self, index: int, mark: Optional[Mark]) -> Mark:
        if not self.grid.is_valid_index(index):
            raise IndexOutOfRange(
                f"Index {index} out of bounds (0-{self.grid.total_cells - 1})"
            )
        mark = validate_mark(self.current_mark if mark is None else mark)
        if self.is_terminal():
            raise IllegalMove("Board already resolved")
        if self.cells[index] is not None:
            raise IllegalMove("Cell already occupied")
        return mark

    # ---- search support ----

    def simulate(self, index: int, mark: Mark) -> Tuple[int, Mark]:
        """Place ``mark`` without rule checks; pair every call with :meth:`undo`."""
        token = (index, self.current_mark)
        self.cells[index] = mark
        self.current_mark = opponent(mark)
        return token

    def undo(self, token: Tuple[int, Mark]) -> None:
        index, previous = token
        self.cells[index] = None
        self.current_mark = previous

    def won_by_move(self, index: int) -> bool:
        """Whether the mark just placed at ``index`` decided the game."""
        return self.line_completed_at(index) is not None

    def captures_board(self, index: int) -> bool:
        # A plain board has no sub-boards; winning it is the only capture.
        return self.won_by_move(index)

    def position_grid(self) -> Grid:
        """Grid used for centre/corner preferences."""
        return self.grid

    def local_index(self, index: int) -> int:
        return index

    # ---- helpers ----

    def copy(self) -> "Board":
        return Board(
            grid=self.grid, cells=self.cells.copy(), current_mark=self.current_mark
        )

    def render(self) -> str:
        """Plain-text picture of the board, one 2D slice per block."""
        return render_cells(self.grid, self.cells)


def render_cells(grid: Grid, cells: List[Optional[Mark]]) -> str:
    dims = grid.dimensions
    symbols = [c if c is not None else "." for c in cells]
    if len(dims) == 1:
        return " ".join(symbols)

    rows, cols = dims[-2], dims[-1]
    plane = rows * cols
    blocks: List[str] = []
    for start in range(0, grid.total_cells, plane):
        lines = [
            " ".join(symbols[start + r * cols : start + (r + 1) * cols])
            for r in range(rows)
        ]
        if len(dims) > 2:
            prefix = grid.index_to_coords(start)[:-2]
            lines.insert(0, f"[{', '.join(map(str, prefix))}]")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
