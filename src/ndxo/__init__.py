"""NDXO package exposing the N-dimensional board engine, AI and web API."""

from .ai import ComputerPlayer, Difficulty, choose_move
from .errors import (
    EngineError,
    IllegalMove,
    IndexOutOfRange,
    InvalidCoordinate,
    InvalidGrid,
)
from .game import Board, MoveResult, Status
from .grid import Grid, create_grid
from .ultimate import UltimateBoard
from .variants import VARIANTS, GameOptions, new_game

__all__ = [
    "Board",
    "ComputerPlayer",
    "Difficulty",
    "EngineError",
    "GameOptions",
    "Grid",
    "IllegalMove",
    "IndexOutOfRange",
    "InvalidCoordinate",
    "InvalidGrid",
    "MoveResult",
    "Status",
    "UltimateBoard",
    "VARIANTS",
    "choose_move",
    "create_grid",
    "new_game",
]
