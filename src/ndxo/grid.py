"""N-dimensional grid geometry: flat index <-> coordinate mapping."""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import IndexOutOfRange, InvalidCoordinate, InvalidGrid
from .lines import Line, generate_lines

Coords = Tuple[int, ...]


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class Grid:
    """A hyper-rectangle of cells addressed by mixed-radix flat indices.

    Axis 0 is the most significant axis: it varies slowest as the flat
    index increases.  Winning lines are generated once on construction and
    never change afterwards.
    """

    def __init__(self, dimensions: Sequence[int]) -> None:
        if isinstance(dimensions, (str, bytes)) or not isinstance(
            dimensions, Sequence
        ):
            raise InvalidGrid("Dimensions must be a non-empty sequence")
        if len(dimensions) == 0:
            raise InvalidGrid("Dimensions must be a non-empty sequence")
        if any(not _is_int(d) or d < 2 for d in dimensions):
            raise InvalidGrid(
                f"Each dimension must be an integer >= 2, got {list(dimensions)}"
            )

        self._dimensions: Coords = tuple(dimensions)
        self._total_cells = math.prod(self._dimensions)
        self._lines: Tuple[Line, ...] = generate_lines(self)

        through: Dict[int, List[Line]] = {i: [] for i in range(self._total_cells)}
        for line in self._lines:
            for index in line:
                through[index].append(line)
        self._lines_through: Tuple[Tuple[Line, ...], ...] = tuple(
            tuple(through[i]) for i in range(self._total_cells)
        )

    # ---- shape ----

    @property
    def dimensions(self) -> Coords:
        return self._dimensions

    @property
    def num_dimensions(self) -> int:
        return len(self._dimensions)

    @property
    def total_cells(self) -> int:
        return self._total_cells

    @property
    def winning_lines(self) -> Tuple[Line, ...]:
        return self._lines

    def lines_through(self, index: int) -> Tuple[Line, ...]:
        """Winning lines that contain ``index``, in generation order."""
        if not self.is_valid_index(index):
            raise IndexOutOfRange(
                f"Index {index} out of bounds (0-{self._total_cells - 1})"
            )
        return self._lines_through[index]

    def is_uniform(self) -> bool:
        """True when every axis has the same length."""
        return len(set(self._dimensions)) == 1

    # ---- coordinate engine ----

    def is_valid_position(self, coords: object) -> bool:
        if not isinstance(coords, (tuple, list)):
            return False
        if len(coords) != self.num_dimensions:
            return False
        return all(
            _is_int(c) and 0 <= c < size for c, size in zip(coords, self._dimensions)
        )

    def is_valid_index(self, index: object) -> bool:
        return _is_int(index) and 0 <= index < self._total_cells  # type: ignore[operator]

    def coords_to_index(self, coords: Sequence[int]) -> int:
        if not self.is_valid_position(coords):
            raise InvalidCoordinate(
                f"Invalid coordinates {coords!r} for grid {list(self._dimensions)}"
            )
        index = 0
        multiplier = 1
        for i in range(self.num_dimensions - 1, -1, -1):
            index += coords[i] * multiplier
            multiplier *= self._dimensions[i]
        return index

    def index_to_coords(self, index: int) -> Coords:
        if not self.is_valid_index(index):
            raise IndexOutOfRange(
                f"Index {index} out of bounds (0-{self._total_cells - 1})"
            )
        coords = [0] * self.num_dimensions
        remaining = index
        for i in range(self.num_dimensions - 1, -1, -1):
            coords[i] = remaining % self._dimensions[i]
            remaining //= self._dimensions[i]
        return tuple(coords)

    # ---- geometry helpers ----

    def center(self) -> Optional[int]:
        """Index of the geometric centre cell, or None if some axis is even."""
        if any(d % 2 == 0 for d in self._dimensions):
            return None
        return self.coords_to_index([d // 2 for d in self._dimensions])

    def is_corner(self, index: int) -> bool:
        coords = self.index_to_coords(index)
        return all(c in (0, d - 1) for c, d in zip(coords, self._dimensions))

    def neighbors(
        self, coords: Sequence[int], include_diagonals: bool = True
    ) -> List[Coords]:
        """Cells adjacent to ``coords``; orthogonal only unless diagonals allowed."""
        if not self.is_valid_position(coords):
            raise InvalidCoordinate(f"Invalid coordinates {coords!r}")

        max_distance = self.num_dimensions if include_diagonals else 1
        found: List[Coords] = []

        def walk(axis: int, offset: List[int]) -> None:
            if axis == self.num_dimensions:
                distance = sum(abs(o) for o in offset)
                if 0 < distance <= max_distance:
                    candidate = tuple(c + o for c, o in zip(coords, offset))
                    if self.is_valid_position(candidate):
                        found.append(candidate)
                return
            for delta in (-1, 0, 1):
                offset[axis] = delta
                walk(axis + 1, offset)

        walk(0, [0] * self.num_dimensions)
        return found

    def manhattan_distance(self, a: Sequence[int], b: Sequence[int]) -> int:
        if not self.is_valid_position(a) or not self.is_valid_position(b):
            raise InvalidCoordinate("Invalid coordinates")
        return sum(abs(x - y) for x, y in zip(a, b))

    def euclidean_distance(self, a: Sequence[int], b: Sequence[int]) -> float:
        if not self.is_valid_position(a) or not self.is_valid_position(b):
            raise InvalidCoordinate("Invalid coordinates")
        return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))

    def info(self) -> Dict[str, object]:
        return {
            "dimensions": list(self._dimensions),
            "numDimensions": self.num_dimensions,
            "totalCells": self._total_cells,
            "numWinningLines": len(self._lines),
            "winningLineLength": max(self._dimensions),
        }

    # ---- dunder ----

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self._dimensions == other._dimensions

    def __hash__(self) -> int:
        return hash(self._dimensions)

    def __repr__(self) -> str:
        return f"Grid({list(self._dimensions)})"


def create_grid(dimensions: Sequence[int]) -> Grid:
    """Build a :class:`Grid`; raises :class:`InvalidGrid` on a bad spec."""
    return Grid(dimensions)
