"""Tests for Ultimate mode (board of boards)."""

import pytest

from ndxo.errors import IllegalMove, IndexOutOfRange, InvalidGrid
from ndxo.game import Status
from ndxo.ultimate import UltimateBoard, build_layout, meta_dimensions, total_cells

DRAWN_CELLS = ["X", "O", "X", "X", "O", "O", "O", "X", "X"]


def snapshot(game: UltimateBoard):
    return (
        game.cells,
        game.meta.cells.copy(),
        game.forced_board,
        game.current_mark,
    )


def test_classic_layout():
    game = UltimateBoard()
    assert game.grid.dimensions == (9, 3, 3)
    assert game.layout.meta_grid.dimensions == (3, 3)
    assert game.layout.board_count == 9
    assert len(game.legal_moves()) == 81
    assert game.status is Status.ACTIVE
    assert game.forced_board is None


def test_split_and_join():
    game = UltimateBoard()
    assert game.split(40) == (4, 4)
    assert game.join(4, 4) == 40
    assert game.local_coords(game.join(7, 5)) == (1, 2)
    with pytest.raises(IndexOutOfRange):
        game.split(81)
    with pytest.raises(IndexOutOfRange):
        game.join(9, 0)


def test_move_forces_matching_board():
    game = UltimateBoard()
    game.apply_move(game.join(0, 4))
    assert game.forced_board == 4
    assert game.current_mark == "O"
    assert {game.split(m)[0] for m in game.legal_moves()} == {4}

    before = snapshot(game)
    with pytest.raises(IllegalMove):
        game.apply_move(game.join(0, 0))
    assert snapshot(game) == before

    game.apply_move(game.join(4, 2))
    assert game.forced_board == 2


def test_turn_order_is_enforced():
    game = UltimateBoard()
    game.apply_move(game.join(0, 4), "X")
    with pytest.raises(IllegalMove):
        game.apply_move(game.join(4, 0), "X")
    assert game.boards[4].cells[0] is None


def test_occupied_cell_rejected():
    game = UltimateBoard()
    game.apply_move(game.join(4, 4))
    before = snapshot(game)
    with pytest.raises(IllegalMove):
        game.apply_move(game.join(4, 4))
    assert snapshot(game) == before


def test_capturing_a_sub_board_marks_the_meta_board():
    game = UltimateBoard()
    game.boards[0].cells[0] = "X"
    game.boards[0].cells[1] = "X"
    result = game.apply_move(game.join(0, 2), "X")
    assert result.status is Status.ACTIVE
    assert game.meta.cells[0] == "X"
    assert game.board_states()[0] == "X"
    assert game.forced_board == 2

    # captured boards are closed even though they have empty cells
    game.forced_board = None
    assert game.join(0, 5) not in game.legal_moves()
    with pytest.raises(IllegalMove):
        game.apply_move(game.join(0, 5), "O")


def test_forced_board_lifted_when_target_captured():
    game = UltimateBoard()
    game.meta.cells[4] = "O"
    game.apply_move(game.join(0, 4))
    assert game.forced_board is None
    assert all(game.split(m)[0] != 4 for m in game.legal_moves())
    with pytest.raises(IllegalMove):
        game.apply_move(game.join(4, 0))


def test_forced_board_lifted_when_target_full():
    game = UltimateBoard()
    game.boards[4].cells = DRAWN_CELLS.copy()
    assert game.board_states()[4] == "draw"
    game.apply_move(game.join(0, 4))
    assert game.forced_board is None
    game.apply_move(game.join(8, 0))
    assert game.forced_board == 0


def test_meta_line_wins_the_game():
    game = UltimateBoard()
    game.meta.cells[0] = "X"
    game.meta.cells[1] = "X"
    game.boards[2].cells[0] = "X"
    game.boards[2].cells[1] = "X"
    result = game.apply_move(game.join(2, 2), "X")
    assert result.status is Status.WON
    assert result.mark == "X"
    assert result.winning_line == (0, 1, 2)
    assert game.winner == "X"
    assert game.legal_moves() == []
    with pytest.raises(IllegalMove):
        game.apply_move(game.join(5, 0))


def test_all_boards_decided_without_meta_line_is_a_draw():
    game = UltimateBoard()
    for board, mark in enumerate(DRAWN_CELLS[:8]):
        game.meta.cells[board] = mark
    game.boards[8].cells = DRAWN_CELLS[:8] + [None]
    game.forced_board = 8
    result = game.apply_move(game.join(8, 8), "X")
    assert result.status is Status.DRAWN
    assert game.status is Status.DRAWN
    assert game.winner is None
    assert game.board_states()[8] == "draw"


def test_three_dimensional_layout_projects_linear_index():
    game = UltimateBoard(size=3, dimensions=3)
    assert game.layout.meta_grid.dimensions == (3,)
    assert game.grid.dimensions == (3, 3, 3, 3)
    # local cell 5 is (z=0, y=1, x=2): 2 + 3 + 0 = 5, reduced mod 3
    game.apply_move(game.join(0, 5))
    assert game.forced_board == 2


def test_higher_dimensional_layout_uses_first_coordinate():
    game = UltimateBoard(size=2, dimensions=4)
    assert game.layout.meta_grid.dimensions == (2, 2, 2)
    assert game.layout.board_count == 8
    assert game.grid.total_cells == 128
    game.apply_move(game.join(3, 8))  # local (1, 0, 0, 0)
    assert game.forced_board == 1


def test_small_two_dimensional_layout():
    layout = build_layout(2, 2)
    assert layout.meta_grid.dimensions == (2, 2)
    assert layout.next_board((1, 1)) == 3
    assert layout.next_board((0, 1)) == 1


def test_layout_helpers():
    assert meta_dimensions(3, 2) == [3, 3]
    assert meta_dimensions(3, 3) == [3]
    assert meta_dimensions(3, 5) == [3, 3, 3, 3]
    assert total_cells(3, 2) == 81
    assert total_cells(3, 3) == 81


@pytest.mark.parametrize("size, dimensions", [(1, 2), (3, 1), (3, 0), (2.5, 2)])
def test_bad_layout(size, dimensions):
    with pytest.raises(InvalidGrid):
        UltimateBoard(size=size, dimensions=dimensions)


def test_simulate_and_undo_restore_capture_and_forced_board():
    game = UltimateBoard()
    game.boards[3].cells[0] = "O"
    game.boards[3].cells[4] = "O"
    game.apply_move(game.join(0, 3))  # X sends O to board 3
    before = snapshot(game)

    token = game.simulate(game.join(3, 8), "O")
    assert game.meta.cells[3] == "O"
    assert game.captures_board(game.join(3, 8))
    assert game.forced_board == 8
    game.undo(token)

    assert snapshot(game) == before


def test_render_marks_forced_board():
    game = UltimateBoard()
    game.apply_move(game.join(0, 4))
    text = game.render()
    assert "board 4 (open) *" in text
    assert text.startswith("board 0 (open)\n. . .\n. X .")


def test_copy_is_independent():
    game = UltimateBoard()
    game.apply_move(game.join(0, 4))
    clone = game.copy()
    clone.apply_move(clone.join(4, 4))
    assert game.boards[4].cells[4] is None
    assert game.forced_board == 4
