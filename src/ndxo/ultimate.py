"""Ultimate mode: a board of boards.

Every cell of a lower-dimensional *meta-board* holds a whole sub-board.
Capturing a sub-board puts the capturer's mark on the matching meta cell and
the meta-board is judged with the ordinary rules.  Where a mark lands inside
its sub-board decides which sub-board the opponent must play in next.

Layouts for sub-boards of edge ``S`` with ``D`` axes::

    D == 2   meta [g, g], g = ceil(sqrt(S*S))   next = (row*g + col) % B
    D == 3   meta [S]                           next = (x + y*S + z*S*S) % B
    D >  3   meta [S] * (D - 1)                 next = first coordinate % B

``B`` is the number of sub-boards (the meta-board's cell count).  The 2D
layout is classic Ultimate tic-tac-toe: nine 3x3 boards, and you are sent to
the board matching the cell you played.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .errors import IllegalMove, IndexOutOfRange, InvalidGrid
from .game import Board, Mark, MoveResult, Status, opponent, validate_mark
from .grid import Coords, Grid
from .lines import Line

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UltimateLayout:
    size: int
    dimensions: int
    board_count: int
    sub_grid: Grid
    meta_grid: Grid
    combined_grid: Grid

    def next_board(self, local: Sequence[int]) -> int:
        """Sub-board the opponent is sent to after a move at ``local``."""
        size = self.size
        if self.dimensions == 2:
            side = self.meta_grid.dimensions[1]
            row, col = local
            target = row * side + col
        elif self.dimensions == 3:
            z, y, x = local
            target = x + y * size + z * size * size
        else:
            target = local[0]
        return target % self.board_count


def meta_dimensions(size: int, dimensions: int) -> List[int]:
    """Axis lengths of the meta-board for sub-boards of edge ``size``."""
    if dimensions == 2:
        side = math.isqrt(size * size)
        if side * side < size * size:
            side += 1
        return [side, side]
    if dimensions == 3:
        return [size]
    return [size] * (dimensions - 1)


def total_cells(size: int, dimensions: int) -> int:
    """Cells across all sub-boards, without building any grid."""
    return math.prod(meta_dimensions(size, dimensions)) * size**dimensions


def build_layout(size: int, dimensions: int) -> UltimateLayout:
    if not isinstance(size, int) or isinstance(size, bool) or size < 2:
        raise InvalidGrid(f"Sub-board size must be an integer >= 2, got {size!r}")
    if not isinstance(dimensions, int) or isinstance(dimensions, bool) or dimensions < 2:
        raise InvalidGrid(
            f"Ultimate mode needs sub-boards with at least 2 axes, got {dimensions!r}"
        )

    meta_grid = Grid(meta_dimensions(size, dimensions))
    board_count = meta_grid.total_cells
    return UltimateLayout(
        size=size,
        dimensions=dimensions,
        board_count=board_count,
        sub_grid=Grid([size] * dimensions),
        meta_grid=meta_grid,
        combined_grid=Grid([board_count] + [size] * dimensions),
    )


# ---------- Game ----------


class UltimateBoard:
    """Sub-boards, the derived meta-board and the forced-board constraint.

    Flat indices address the combined grid ``[B] + [S] * D``; the first
    coordinate picks the sub-board and the rest is the cell inside it.
    """

    def __init__(self, size: int = 3, dimensions: int = 2, first_mark: Mark = "X"):
        self.layout = build_layout(size, dimensions)
        self.boards: List[Board] = [
            Board(self.layout.sub_grid) for _ in range(self.layout.board_count)
        ]
        self.meta = Board(self.layout.meta_grid)
        self.current_mark: Mark = validate_mark(first_mark)
        # None means "free move": any undecided sub-board may be played.
        self.forced_board: Optional[int] = None

    # ---- addressing ----

    @property
    def grid(self) -> Grid:
        return self.layout.combined_grid

    @property
    def cells(self) -> List[Optional[Mark]]:
        return [c for board in self.boards for c in board.cells]

    def split(self, index: int) -> Tuple[int, int]:
        """(sub-board, cell inside the sub-board) for a combined index."""
        if not self.grid.is_valid_index(index):
            raise IndexOutOfRange(
                f"Index {index} out of bounds (0-{self.grid.total_cells - 1})"
            )
        return divmod(index, self.layout.sub_grid.total_cells)

    def join(self, board: int, cell: int) -> int:
        if not 0 <= board < self.layout.board_count:
            raise IndexOutOfRange(f"Sub-board {board} does not exist")
        if not self.layout.sub_grid.is_valid_index(cell):
            raise IndexOutOfRange(f"Cell {cell} does not exist in a sub-board")
        return board * self.layout.sub_grid.total_cells + cell

    def local_coords(self, index: int) -> Coords:
        return self.grid.index_to_coords(index)[1:]

    # ---- state ----

    def is_decided(self, board: int) -> bool:
        """A sub-board is closed once captured or full."""
        return self.meta.cells[board] is not None or self.boards[board].is_full()

    def board_states(self) -> List[Optional[str]]:
        """Per sub-board: 'X' or 'O' if captured, 'draw' if full, else None."""
        out: List[Optional[str]] = []
        for i, board in enumerate(self.boards):
            if self.meta.cells[i] is not None:
                out.append(self.meta.cells[i])
            elif board.is_full():
                out.append("draw")
            else:
                out.append(None)
        return out

    @property
    def status(self) -> Status:
        if self.meta.check_winner() is not None:
            return Status.WON
        if all(self.is_decided(i) for i in range(self.layout.board_count)):
            return Status.DRAWN
        return Status.ACTIVE

    @property
    def winner(self) -> Optional[Mark]:
        return self.meta.winner

    @property
    def winning_line(self) -> Optional[Line]:
        """Winning line in meta-board indices (one entry per sub-board)."""
        return self.meta.winning_line

    def is_terminal(self) -> bool:
        return self.status is not Status.ACTIVE

    def legal_moves(self) -> List[int]:
        if self.is_terminal():
            return []
        return self.open_moves()

    def open_moves(self) -> List[int]:
        if self.forced_board is not None and not self.is_decided(self.forced_board):
            candidates: Sequence[int] = (self.forced_board,)
        else:
            candidates = range(self.layout.board_count)

        moves: List[int] = []
        for b in candidates:
            if self.is_decided(b):
                continue
            for cell, mark in enumerate(self.boards[b].cells):
                if mark is None:
                    moves.append(self.join(b, cell))
        return moves

    def is_legal(self, index: int, mark: Optional[Mark] = None) -> bool:
        try:
            self._check_move(index, mark)
        except (IllegalMove, IndexOutOfRange):
            return False
        return True

    # ---- moves ----

    def apply_move(self, index: int, mark: Optional[Mark] = None) -> MoveResult:
        """Play ``index`` for ``mark`` (defaults to the side to move)."""
        mark = self._check_move(index, mark)
        b, cell = self.split(index)

        local = self.boards[b].apply_move(cell, mark)
        if local.status is Status.WON:
            self.meta.cells[b] = mark
            logger.debug("%s captured sub-board %d", mark, b)

        self.current_mark = opponent(mark)
        found = self.meta.check_winner()
        if found is not None:
            self.forced_board = None
            logger.info("%s won the meta-board along %s", found[0], found[1])
            return MoveResult(Status.WON, found[0], found[1])

        self.forced_board = self._forced_after(cell)
        logger.debug("next sub-board: %s", self.forced_board)
        if self.status is Status.DRAWN:
            logger.info("ultimate game drawn")
            return MoveResult(Status.DRAWN)
        return MoveResult(Status.ACTIVE)

    def _check_move(self, index: int, mark: Optional[Mark]) -> Mark:
        b, cell = self.split(index)
        mark = validate_mark(self.current_mark if mark is None else mark)
        if self.is_terminal():
            raise IllegalMove("Game already finished")
        if mark != self.current_mark:
            raise IllegalMove(f"It is {self.current_mark}'s turn")
        if self.is_decided(b):
            raise IllegalMove(f"Sub-board {b} is already decided")
        if self.forced_board is not None and b != self.forced_board:
            raise IllegalMove(f"Move must be played in sub-board {self.forced_board}")
        if self.boards[b].cells[cell] is not None:
            raise IllegalMove("Cell already occupied")
        return mark

    def _forced_after(self, cell: int) -> Optional[int]:
        local = self.layout.sub_grid.index_to_coords(cell)
        target = self.layout.next_board(local)
        return None if self.is_decided(target) else target

    # ---- search support ----

    def simulate(self, index: int, mark: Mark) -> tuple:
        b, cell = divmod(index, self.layout.sub_grid.total_cells)
        token = (index, self.forced_board, self.current_mark)
        board = self.boards[b]
        board.cells[cell] = mark
        if board.line_completed_at(cell) is not None:
            self.meta.cells[b] = mark
        self.forced_board = self._forced_after(cell)
        self.current_mark = opponent(mark)
        return token

    def undo(self, token: tuple) -> None:
        index, forced, current = token
        b, cell = divmod(index, self.layout.sub_grid.total_cells)
        self.boards[b].cells[cell] = None
        # The sub-board was open before the move, so any capture came from it.
        self.meta.cells[b] = None
        self.forced_board = forced
        self.current_mark = current

    def won_by_move(self, index: int) -> bool:
        b = index // self.layout.sub_grid.total_cells
        return self.meta.line_completed_at(b) is not None

    def captures_board(self, index: int) -> bool:
        b, cell = divmod(index, self.layout.sub_grid.total_cells)
        return self.boards[b].line_completed_at(cell) is not None

    def position_grid(self) -> Grid:
        return self.layout.sub_grid

    def local_index(self, index: int) -> int:
        return index % self.layout.sub_grid.total_cells

    # ---- helpers ----

    def copy(self) -> "UltimateBoard":
        clone = UltimateBoard.__new__(UltimateBoard)
        clone.layout = self.layout
        clone.boards = [b.copy() for b in self.boards]
        clone.meta = self.meta.copy()
        clone.current_mark = self.current_mark
        clone.forced_board = self.forced_board
        return clone

    def render(self) -> str:
        parts = []
        states = self.board_states()
        for i, board in enumerate(self.boards):
            state = states[i] or "open"
            marker = " *" if i == self.forced_board else ""
            parts.append(f"board {i} ({state}){marker}\n{board.render()}")
        parts.append(f"meta\n{self.meta.render()}")
        return "\n\n".join(parts)

    def __repr__(self) -> str:
        return (
            f"UltimateBoard(size={self.layout.size}, "
            f"dimensions={self.layout.dimensions}, status={self.status.value})"
        )
