"""Game options and the named variants built from them."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Optional, Tuple, Union

from .errors import InvalidGrid
from .game import Board, Mark, validate_mark
from .grid import Grid
from .ultimate import UltimateBoard


@dataclass(frozen=True)
class GameOptions:
    """Immutable description of a game; ``new_game`` turns it into a board.

    ``shape`` overrides ``size``/``dimensions`` with an explicit (possibly
    non-cubic) grid and is only meaningful outside Ultimate mode.
    """

    size: int = 3
    dimensions: int = 2
    ultimate: bool = False
    first_mark: Mark = "X"
    shape: Optional[Tuple[int, ...]] = None

    def __post_init__(self) -> None:
        for name in ("size", "dimensions"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidGrid(f"{name} must be an integer, got {value!r}")
        if self.size < 2:
            raise InvalidGrid("size must be at least 2")
        if self.dimensions < 1:
            raise InvalidGrid("dimensions must be at least 1")
        if self.ultimate and self.dimensions < 2:
            raise InvalidGrid("Ultimate mode needs sub-boards with at least 2 axes")
        if self.shape is not None:
            if self.ultimate:
                raise InvalidGrid("shape cannot be combined with Ultimate mode")
            object.__setattr__(self, "shape", tuple(self.shape))
        validate_mark(self.first_mark)

    @property
    def grid_dimensions(self) -> Tuple[int, ...]:
        if self.shape is not None:
            return self.shape
        return (self.size,) * self.dimensions

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["shape"] = list(self.shape) if self.shape is not None else None
        return data


Game = Union[Board, UltimateBoard]


def new_game(options: GameOptions) -> Game:
    """A fresh board for ``options``; resetting means calling this again."""
    if options.ultimate:
        return UltimateBoard(
            size=options.size,
            dimensions=options.dimensions,
            first_mark=options.first_mark,
        )
    return Board(Grid(options.grid_dimensions), current_mark=options.first_mark)


VARIANTS: Dict[str, GameOptions] = {
    "classic": GameOptions(size=3, dimensions=2),
    "cube": GameOptions(size=3, dimensions=3),
    "hypercube": GameOptions(size=3, dimensions=4),
    "ultimate": GameOptions(size=3, dimensions=2, ultimate=True),
    "ultimate-3d": GameOptions(size=3, dimensions=3, ultimate=True),
}


def variant(name: str) -> GameOptions:
    try:
        return VARIANTS[name]
    except KeyError as exc:
        raise KeyError(
            f"Unknown variant {name!r}; choose one of {', '.join(VARIANTS)}"
        ) from exc
