"""Exceptions raised by the NDXO engine.

All of them derive from :class:`ValueError` so callers that only care about
"the request was bad" can keep catching that.
"""

from __future__ import annotations


class EngineError(ValueError):
    """Base class for every error the engine raises."""


class InvalidGrid(EngineError):
    """The dimension specification is empty, non-integral or has an axis < 2."""


class InvalidCoordinate(EngineError):
    """A coordinate tuple has the wrong shape or a component out of range."""


class IndexOutOfRange(EngineError):
    """A flat cell index lies outside ``[0, total_cells)``."""


class IllegalMove(EngineError):
    """A move breaks the rules; the board is left untouched."""
