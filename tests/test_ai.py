"""Tests for the computer opponents."""

import random

import pytest

from ndxo.ai import ComputerPlayer, Difficulty, choose_move, default_depth
from ndxo.game import Board, Status
from ndxo.grid import Grid
from ndxo.ultimate import UltimateBoard
from ndxo.variants import VARIANTS, new_game


def board_from(cells, current="X"):
    marks = [None if c == "." else c for c in cells]
    return Board(Grid([3, 3]), cells=marks, current_mark=current)


def state(game):
    if isinstance(game, UltimateBoard):
        return (game.cells, game.meta.cells.copy(), game.forced_board, game.current_mark)
    return (game.cells.copy(), game.current_mark)


@pytest.mark.parametrize("difficulty", [Difficulty.MEDIUM, Difficulty.HARD])
def test_takes_immediate_win(difficulty):
    board = board_from("XX.OO....")
    assert choose_move(board, "X", difficulty) == 2


@pytest.mark.parametrize("difficulty", [Difficulty.MEDIUM, Difficulty.HARD])
def test_blocks_opponent_win(difficulty):
    board = board_from("XX..O....", current="O")
    assert choose_move(board, "O", difficulty) == 2


def test_medium_prefers_center_then_corner():
    rng = random.Random(3)
    assert choose_move(Board(Grid([3, 3])), "X", "medium", rng=rng) == 4
    assert choose_move(Board(Grid([3, 3, 3])), "X", "medium", rng=rng) == 13

    board = board_from("....X....", current="O")
    assert choose_move(board, "O", "medium", rng=rng) in (0, 2, 6, 8)


def test_medium_on_even_board_falls_back_to_corners():
    board = Board(Grid([4, 4]))
    move = choose_move(board, "X", "medium", rng=random.Random(1))
    assert board.grid.is_corner(move)


@pytest.mark.parametrize("name", list(VARIANTS))
@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_every_tier_picks_a_legal_move(name, difficulty):
    rng = random.Random(11)
    game = new_game(VARIANTS[name])
    for _ in range(4):
        if game.is_terminal():
            break
        legal = game.legal_moves()
        before = state(game)
        move = choose_move(game, game.current_mark, difficulty, max_depth=2, rng=rng)
        assert move in legal
        assert state(game) == before
        game.apply_move(move)


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_no_move_on_finished_board(difficulty):
    board = board_from("XXXOO....", current="O")
    assert board.status is Status.WON
    assert choose_move(board, "O", difficulty) is None


def test_last_open_cell_is_chosen():
    board = board_from("XOXXOOOX.")
    for difficulty in Difficulty:
        assert choose_move(board, "X", difficulty) == 8


def test_hard_search_leaves_board_untouched():
    board = board_from("X...O....")
    before = state(board)
    choose_move(board, "X", Difficulty.HARD)
    assert state(board) == before


def test_default_depth_shrinks_on_large_boards():
    assert default_depth(9) == 9
    assert default_depth(3) == 3
    assert default_depth(26) == 4
    assert default_depth(81) == 4
    assert default_depth(242) == 2


def test_hard_reply_on_five_dimensional_board():
    board = Board(Grid([3] * 5))
    board.apply_move(0)
    before = state(board)
    move = choose_move(board, "O", "hard")
    assert move in board.legal_moves()
    assert state(board) == before


def test_hard_self_play_is_a_draw():
    board = Board(Grid([3, 3]))
    while not board.is_terminal():
        board.apply_move(choose_move(board, board.current_mark, "hard"))
    assert board.status is Status.DRAWN


def test_hard_wins_instead_of_defending():
    # O threatens 2 and 7; only taking 2 at once avoids the loss.
    board = board_from("XX.XO.O.O")
    assert choose_move(board, "X", "hard") == 2


def test_ultimate_medium_captures_sub_board():
    game = UltimateBoard()
    game.boards[0].cells[0] = "X"
    game.boards[0].cells[1] = "X"
    game.forced_board = 0
    assert choose_move(game, "X", "medium", rng=random.Random(0)) == game.join(0, 2)


def test_ultimate_hard_respects_forced_board():
    game = UltimateBoard()
    game.apply_move(game.join(0, 4))
    before = state(game)
    move = choose_move(game, "O", "hard", max_depth=2)
    assert game.split(move)[0] == 4
    assert state(game) == before


def test_ultimate_hard_takes_game_win():
    game = UltimateBoard()
    game.meta.cells[0] = "O"
    game.meta.cells[1] = "O"
    game.boards[2].cells[3] = "O"
    game.boards[2].cells[4] = "O"
    game.current_mark = "O"
    game.forced_board = 2
    assert choose_move(game, "O", "hard", max_depth=3) == game.join(2, 5)


def test_computer_player_checks_turn():
    ai = ComputerPlayer(mark="O", difficulty="hard", seed=1)
    board = Board(Grid([3, 3]))
    with pytest.raises(ValueError):
        ai.choose(board)
    board.apply_move(0, "X")
    assert ai.choose(board) in board.legal_moves()


def test_computer_player_rejects_bad_depth():
    with pytest.raises(ValueError):
        ComputerPlayer(mark="X", max_depth=0)


def test_seeded_easy_player_is_reproducible():
    first = ComputerPlayer(mark="X", difficulty="easy", seed=42)
    second = ComputerPlayer(mark="X", difficulty="easy", seed=42)
    board = Board(Grid([3, 3, 3]))
    assert first.choose(board) == second.choose(board)


def test_difficulty_parse():
    assert Difficulty.parse("random") is Difficulty.EASY
    assert Difficulty.parse("Heuristic") is Difficulty.MEDIUM
    assert Difficulty.parse("minimax") is Difficulty.HARD
    assert Difficulty.parse(Difficulty.HARD) is Difficulty.HARD
    with pytest.raises(ValueError):
        Difficulty.parse("impossible")
