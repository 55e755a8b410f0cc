"""Winning-line generation for N-dimensional grids.

Lines are produced in three passes, always in the same order so that
"first winning line found" is deterministic:

1. axis lines, one axis at a time;
2. main and anti diagonals of every plane spanned by two equal-length axes;
3. hyper-diagonals through every axis, only when all axes share one length
   and there are more than two of them.

The hyper-diagonal pass walks all ``2 ** n`` direction patterns, so every
geometric diagonal shows up twice (once per direction).  Win checks treat a
line as a set, which makes the repeat harmless; :func:`distinct_lines`
removes it when an exact geometric count is wanted.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Iterable, Iterator, List, Sequence, Tuple

if TYPE_CHECKING:
    from .grid import Grid

Line = Tuple[int, ...]


def _assignments(dimensions: Sequence[int], axes: Sequence[int]) -> Iterator[List[int]]:
    """Yield coordinate templates covering every value of ``axes``.

    Axes not listed are left at 0 for the caller to fill in.
    """
    ranges = [range(dimensions[a]) for a in axes]
    for values in itertools.product(*ranges):
        coords = [0] * len(dimensions)
        for axis, value in zip(axes, values):
            coords[axis] = value
        yield coords


def axis_lines(grid: "Grid") -> List[Line]:
    dims = grid.dimensions
    lines: List[Line] = []
    for axis in range(len(dims)):
        others = [a for a in range(len(dims)) if a != axis]
        for coords in _assignments(dims, others):
            line = []
            for i in range(dims[axis]):
                coords[axis] = i
                line.append(grid.coords_to_index(coords))
            lines.append(tuple(line))
    return lines


def planar_diagonals(grid: "Grid") -> List[Line]:
    dims = grid.dimensions
    lines: List[Line] = []
    for first, second in itertools.combinations(range(len(dims)), 2):
        # A rectangular plane has no full-length corner-to-corner diagonal.
        if dims[first] != dims[second]:
            continue
        size = dims[first]
        fixed = [a for a in range(len(dims)) if a not in (first, second)]
        for coords in _assignments(dims, fixed):
            main: List[int] = []
            anti: List[int] = []
            for i in range(size):
                coords[first] = i
                coords[second] = i
                main.append(grid.coords_to_index(coords))
                coords[second] = size - 1 - i
                anti.append(grid.coords_to_index(coords))
            lines.append(tuple(main))
            lines.append(tuple(anti))
    return lines


def hyper_diagonals(grid: "Grid") -> List[Line]:
    dims = grid.dimensions
    if len(dims) <= 2 or not grid.is_uniform():
        return []
    size = dims[0]
    lines: List[Line] = []
    for pattern in range(2 ** len(dims)):
        line = []
        for step in range(size):
            coords = [
                step if pattern & (1 << axis) else size - 1 - step
                for axis in range(len(dims))
            ]
            line.append(grid.coords_to_index(coords))
        lines.append(tuple(line))
    return lines


def generate_lines(grid: "Grid") -> Tuple[Line, ...]:
    """All winning lines of ``grid`` in generation order."""
    return tuple(axis_lines(grid) + planar_diagonals(grid) + hyper_diagonals(grid))


def distinct_lines(lines: Iterable[Line]) -> Tuple[Line, ...]:
    """Drop lines that cover the same cells as an earlier one."""
    seen = set()
    unique: List[Line] = []
    for line in lines:
        key = frozenset(line)
        if key in seen:
            continue
        seen.add(key)
        unique.append(line)
    return tuple(unique)
