"""FastAPI JSON surface for playing NDXO games from a browser front-end."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .ai import ComputerPlayer, Difficulty
from .config import Settings
from .errors import EngineError
from .game import MoveResult, Status
from .grid import Grid
from .ultimate import UltimateBoard, total_cells as ultimate_cells
from .variants import VARIANTS, Game, GameOptions, new_game

logger = logging.getLogger(__name__)

_settings = Settings.from_env()

AI_THINK_DELAY: float = _settings.ai_delay
MAX_CELLS = 3 ** 5  # keeps hypothetical searches on one request responsive
MAX_LINES_LISTED = 500


@dataclass
class GameSession:
    """Container for an active game, its computer players and running score."""

    options: GameOptions
    game: Game
    computers: Dict[str, ComputerPlayer] = field(default_factory=dict)
    move_log: List[Dict[str, object]] = field(default_factory=list)
    score: Dict[str, int] = field(
        default_factory=lambda: {"X": 0, "O": 0, "draws": 0}
    )
    ai_pending: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def computer_to_move(self) -> Optional[ComputerPlayer]:
        if self.game.is_terminal():
            return None
        return self.computers.get(self.game.current_mark)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="NDXO", description="N-dimensional tic-tac-toe engine")


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    model_config = ConfigDict(populate_by_name=True)

    variant: Optional[str] = Field(
        default=None, description="Named preset; overrides size/dimensions/ultimate"
    )
    size: int = Field(default=3, ge=2, le=7)
    dimensions: int = Field(default=2, ge=1, le=5)
    ultimate: bool = False
    opponent: Literal["computer", "human", "ai-vs-ai"] = "computer"
    difficulty: str = "medium"
    max_depth: Optional[int] = Field(default=None, alias="maxDepth", ge=1, le=9)

    @field_validator("variant")
    @classmethod
    def ensure_known_variant(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in VARIANTS:
            raise ValueError(
                f"Unknown variant {value!r}. Choose one of {', '.join(VARIANTS)}."
            )
        return value

    @field_validator("difficulty")
    @classmethod
    def ensure_supported_difficulty(cls, value: str) -> str:
        return Difficulty.parse(value).value

    @model_validator(mode="after")
    def ensure_reasonable_size(self) -> "NewGameRequest":
        options = self.to_options()
        if options.ultimate:
            cells = ultimate_cells(options.size, options.dimensions)
        else:
            cells = options.size ** options.dimensions
        if cells > MAX_CELLS:
            raise ValueError(f"Board has {cells} cells; the limit is {MAX_CELLS}")
        return self

    def to_options(self) -> GameOptions:
        if self.variant is not None:
            return VARIANTS[self.variant]
        try:
            return GameOptions(
                size=self.size, dimensions=self.dimensions, ultimate=self.ultimate
            )
        except EngineError as exc:
            raise ValueError(str(exc)) from exc


class MoveRequest(BaseModel):
    """Request payload for a move, by flat index or by coordinates."""

    index: Optional[int] = Field(default=None, ge=0)
    coords: Optional[List[int]] = None

    @model_validator(mode="after")
    def ensure_one_target(self) -> "MoveRequest":
        if (self.index is None) == (self.coords is None):
            raise ValueError("Provide exactly one of 'index' or 'coords'")
        return self


def _create_session(request: NewGameRequest) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    options = request.to_options()
    if request.opponent == "computer":
        marks: Tuple[str, ...] = ("O",)
    elif request.opponent == "ai-vs-ai":
        marks = ("X", "O")
    else:
        marks = ()
    computers = {
        mark: ComputerPlayer(
            mark=mark,
            difficulty=Difficulty.parse(request.difficulty),
            max_depth=request.max_depth,
        )
        for mark in marks
    }
    session = GameSession(options=options, game=new_game(options), computers=computers)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info(
        "created game %s with %s (opponent=%s)", session_id, options, request.opponent
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _record_result(game_id: str, session: GameSession, result: MoveResult) -> None:
    if result.status is Status.ACTIVE:
        return
    key = result.mark if result.status is Status.WON else "draws"
    session.score[key] += 1
    logger.info(
        "game %s finished: %s (score %s)", game_id, result.status.value, session.score
    )


def _schedule_ai(
    game_id: str, session: GameSession, background_tasks: Optional[BackgroundTasks]
) -> None:
    """Queue the computer's reply; the caller must hold ``session.lock``."""
    if background_tasks is None or session.computer_to_move() is None:
        return
    session.ai_pending = True
    background_tasks.add_task(_run_ai_turn, game_id)


def _run_ai_turn(game_id: str) -> None:
    """Play computer moves until a human is to move or the game is over."""
    session = SESSIONS.get(game_id)
    if not session:
        return

    try:
        while True:
            time.sleep(max(0.0, AI_THINK_DELAY))
            with session.lock:
                computer = session.computer_to_move()
                if computer is None:
                    return
                index = computer.choose(session.game)
                if index is None:
                    logger.warning(
                        "game %s: computer found no move on a live board", game_id
                    )
                    return
                result = session.game.apply_move(index, computer.mark)
                session.move_log.append({"player": computer.mark, "index": index})
                _record_result(game_id, session, result)
    finally:
        with session.lock:
            session.ai_pending = False


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        status = game.status
        line = game.winning_line
        state: Dict[str, object] = {
            "id": game_id,
            "options": session.options.to_dict(),
            "dimensions": list(game.grid.dimensions),
            "cells": [c or "" for c in game.cells],
            "currentPlayer": game.current_mark,
            "status": status.value,
            "winner": game.winner,
            "winningLine": list(line) if line is not None else None,
            "legalMoves": game.legal_moves(),
            "forcedBoard": None,
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
            "score": dict(session.score),
        }
        if isinstance(game, UltimateBoard):
            board_states = game.board_states()
            state["forcedBoard"] = game.forced_board
            state["boards"] = [
                {
                    "index": index,
                    "cells": [c or "" for c in board.cells],
                    "state": board_states[index],
                }
                for index, board in enumerate(game.boards)
            ]
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    move: MoveRequest,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        game = session.game
        if game.is_terminal():
            raise HTTPException(status_code=400, detail="Game already finished")

        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")

        if session.computer_to_move() is not None:
            raise HTTPException(status_code=400, detail="It is the computer's turn")

        player = game.current_mark
        try:
            if move.coords is None:
                index = move.index
            else:
                index = game.grid.coords_to_index(move.coords)
            result = game.apply_move(index, player)
        except EngineError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        session.move_log.append({"player": player, "index": index})
        _record_result(game_id, session, result)
        _schedule_ai(game_id, session, background_tasks)


@app.post("/api/game")
def create_game(
    request: NewGameRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    game_id, session = _create_session(request)
    with session.lock:
        _schedule_ai(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str, background_tasks: BackgroundTasks) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")
        session.game = new_game(session.options)
        session.move_log = []
        _schedule_ai(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/grid")
def describe_grid(
    dimensions: str = Query(..., description="Comma separated axis lengths, e.g. 3,3,3"),
) -> Dict[str, object]:
    try:
        axes = [int(part) for part in dimensions.split(",") if part.strip()]
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Dimensions must be integers") from exc
    if axes and max(axes) ** len(axes) > MAX_CELLS:
        raise HTTPException(status_code=400, detail="Grid is too large to describe")
    try:
        grid = Grid(axes)
    except EngineError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    info = grid.info()
    info["winningLines"] = [list(line) for line in grid.winning_lines[:MAX_LINES_LISTED]]
    return info
