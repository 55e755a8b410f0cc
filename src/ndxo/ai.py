"""Computer opponents: random, heuristic and depth-limited alpha-beta minimax."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from .game import Board, Mark, opponent, validate_mark
from .ultimate import UltimateBoard

logger = logging.getLogger(__name__)

Playable = Union[Board, UltimateBoard]

# Terminal score base: a win found after ``depth`` plies scores WIN_SCORE - depth.
WIN_SCORE = 10
# Search the whole tree when this few moves remain; cap the depth otherwise.
FULL_SEARCH_MOVES = 9
DEFAULT_MAX_DEPTH = 4
# Above this many moves (e.g. a 3^5 board) even depth 4 takes seconds.
LARGE_BOARD_MOVES = 81
LARGE_BOARD_DEPTH = 2


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, value: Union[str, "Difficulty"]) -> "Difficulty":
        if isinstance(value, Difficulty):
            return value
        aliases = {"random": cls.EASY, "heuristic": cls.MEDIUM, "minimax": cls.HARD}
        key = str(value).strip().lower()
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError as exc:
            raise ValueError(f"Unknown difficulty {value!r}") from exc


@dataclass
class SearchStats:
    nodes: int = 0
    cutoffs: int = 0


# ---- public API ----


def choose_move(
    board: Playable,
    mark: Mark,
    difficulty: Union[str, Difficulty] = Difficulty.MEDIUM,
    max_depth: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Optional[int]:
    """Pick a legal index for ``mark``, or None when no move is possible.

    The board is used as scratch space during the search but is always left
    exactly as it was given.
    """
    mark = validate_mark(mark)
    level = Difficulty.parse(difficulty)
    rng = rng or random.Random()

    moves = board.legal_moves()
    if not moves:
        logger.warning("no legal move available for %s on %r", mark, board)
        return None

    if level is Difficulty.EASY:
        return rng.choice(moves)
    if level is Difficulty.MEDIUM:
        return heuristic_move(board, mark, moves, rng)
    return minimax_move(board, mark, moves, max_depth)


@dataclass
class ComputerPlayer:
    """A computer opponent bound to one mark.

    Only the random generator survives between calls; every search starts
    from scratch.
    """

    mark: Mark
    difficulty: Difficulty = Difficulty.MEDIUM
    max_depth: Optional[int] = None
    seed: Optional[int] = None
    _rng: random.Random = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.mark = validate_mark(self.mark)
        self.difficulty = Difficulty.parse(self.difficulty)
        if self.max_depth is not None and self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self._rng = random.Random(self.seed)

    def choose(self, board: Playable) -> Optional[int]:
        if board.current_mark != self.mark:
            raise ValueError("It is not this AI player's turn")
        return choose_move(
            board, self.mark, self.difficulty, self.max_depth, rng=self._rng
        )


# ---- heuristic tier ----


def _wins(board: Playable, move: int, mark: Mark) -> bool:
    token = board.simulate(move, mark)
    try:
        return board.won_by_move(move)
    finally:
        board.undo(token)


def _captures(board: Playable, move: int, mark: Mark) -> bool:
    token = board.simulate(move, mark)
    try:
        return board.captures_board(move)
    finally:
        board.undo(token)


def heuristic_move(
    board: Playable, mark: Mark, moves: List[int], rng: random.Random
) -> int:
    """Win, block, capture, block a capture, centre, corner, then random."""
    other = opponent(mark)

    for move in moves:
        if _wins(board, move, mark):
            return move
    for move in moves:
        if _wins(board, move, other):
            return move

    # Ultimate only: take a sub-board, or deny one to the opponent.
    if isinstance(board, UltimateBoard):
        for move in moves:
            if _captures(board, move, mark):
                return move
        for move in moves:
            if _captures(board, move, other):
                return move

    grid = board.position_grid()
    center = grid.center()
    if center is not None:
        central = [m for m in moves if board.local_index(m) == center]
        if central:
            return rng.choice(central)

    corners = [m for m in moves if grid.is_corner(board.local_index(m))]
    if corners:
        return rng.choice(corners)

    return rng.choice(moves)


# ---- minimax tier ----


def default_depth(move_count: int) -> int:
    if move_count <= FULL_SEARCH_MOVES:
        return max(1, move_count)
    if move_count > LARGE_BOARD_MOVES:
        return LARGE_BOARD_DEPTH
    return DEFAULT_MAX_DEPTH


def minimax_move(
    board: Playable, mark: Mark, moves: List[int], max_depth: Optional[int] = None
) -> int:
    if max_depth is None:
        max_depth = default_depth(len(moves))
    if max_depth < 1:
        raise ValueError("max_depth must be at least 1")
    win_score = max(WIN_SCORE, max_depth + 1)

    stats = SearchStats()
    alpha, beta = -math.inf, math.inf
    best_move = moves[0]
    best_score = -math.inf

    for move in _order_moves(board, moves, mark):
        token = board.simulate(move, mark)
        try:
            if board.won_by_move(move):
                score: float = win_score
            else:
                score = _minimax(
                    board, mark, opponent(mark), 1, max_depth, alpha, beta,
                    win_score, stats,
                )
        finally:
            board.undo(token)
        if score > best_score:
            best_score, best_move = score, move
        alpha = max(alpha, best_score)

    logger.debug(
        "minimax for %s: move=%d score=%s depth=%d nodes=%d cutoffs=%d",
        mark, best_move, best_score, max_depth, stats.nodes, stats.cutoffs,
    )
    return best_move


def _minimax(
    board: Playable,
    ai_mark: Mark,
    to_move: Mark,
    depth: int,
    max_depth: int,
    alpha: float,
    beta: float,
    win_score: int,
    stats: SearchStats,
) -> float:
    stats.nodes += 1
    if depth >= max_depth:
        return 0.0
    moves = board.open_moves()
    if not moves:
        return 0.0  # draw

    maximizing = to_move == ai_mark
    if max_depth - depth >= 2:
        moves = _order_moves(board, moves, to_move)

    value = -math.inf if maximizing else math.inf
    for move in moves:
        token = board.simulate(move, to_move)
        try:
            if board.won_by_move(move):
                score = win_score - depth if maximizing else -(win_score - depth)
            else:
                score = _minimax(
                    board, ai_mark, opponent(to_move), depth + 1, max_depth,
                    alpha, beta, win_score, stats,
                )
        finally:
            board.undo(token)

        if maximizing:
            value = max(value, score)
            alpha = max(alpha, value)
        else:
            value = min(value, score)
            beta = min(beta, value)
        if beta <= alpha:
            stats.cutoffs += 1
            break
    return value


def _order_moves(board: Playable, moves: List[int], mark: Mark) -> List[int]:
    """Wins first, then blocks, then centre and corners; stable otherwise."""
    other = opponent(mark)
    grid = board.position_grid()
    center = grid.center()

    def key(move: int) -> float:
        if _wins(board, move, mark):
            return 4.0
        if _wins(board, move, other):
            return 3.0
        local = board.local_index(move)
        if local == center:
            return 1.0
        if grid.is_corner(local):
            return 0.5
        return 0.0

    return sorted(moves, key=key, reverse=True)
