from tilematch.components.grid import Grid
from tilematch.systems.board_ops import find_matches, find_valid_swaps, is_adjacent, predict_swap_creates_match
from tests.helpers import make_grid, stalemate_cells


def test_base_pattern_has_no_matches():
    assert find_matches(make_grid()) == set()


def test_horizontal_run_of_three():
    grid = make_grid({1: 'red', 2: 'red'})  # cell 0 is already red
    assert find_matches(grid) == {0, 1, 2}


def test_vertical_run_of_three():
    grid = make_grid({8: 'teal', 16: 'teal', 24: 'teal'})
    assert find_matches(grid) == {8, 16, 24}


def test_run_of_five_counts_every_cell():
    grid = make_grid({3: 'green', 4: 'green', 5: 'green', 6: 'green', 7: 'blue'})
    # Row 0 becomes red blue green green green green green blue.
    assert find_matches(grid) == {2, 3, 4, 5, 6}


def test_l_shape_is_one_union_without_duplicates():
    # Row 2 cols 0-2 and col 2 rows 0-2 share index 18.
    grid = make_grid({2: 'teal', 10: 'teal', 16: 'teal', 17: 'teal', 18: 'teal'})
    matches = find_matches(grid)
    assert matches == {2, 10, 16, 17, 18}
    assert len(matches) == 5


def test_cross_shape_unions_both_runs():
    grid = make_grid({9: 'teal', 17: 'teal', 25: 'teal', 16: 'teal', 18: 'teal'})
    assert find_matches(grid) == {9, 16, 17, 18, 25}


def test_runs_do_not_wrap_across_rows():
    # Last two cells of row 0 and first cell of row 1 are contiguous in memory only.
    grid = make_grid({6: 'teal', 7: 'teal', 8: 'teal'})
    assert find_matches(grid) == set()


def test_order_independent_of_scan_position():
    cells = make_grid().cells
    grid_a = Grid(cells=list(cells))
    grid_a.cells[40:43] = ['teal'] * 3
    grid_b = Grid(cells=list(cells))
    grid_b.cells[42], grid_b.cells[41], grid_b.cells[40] = 'teal', 'teal', 'teal'
    assert find_matches(grid_a) == find_matches(grid_b) == {40, 41, 42}


def test_adjacency_rules():
    grid = make_grid()
    assert is_adjacent(grid, 0, 1)
    assert is_adjacent(grid, 0, 8)
    assert not is_adjacent(grid, 0, 9)   # diagonal
    assert not is_adjacent(grid, 7, 8)   # row wrap
    assert not is_adjacent(grid, 0, 2)
    assert not is_adjacent(grid, 5, 5)


def test_predict_swap_does_not_mutate_grid():
    grid = make_grid({1: 'red', 10: 'red'})
    before = list(grid.cells)
    assert predict_swap_creates_match(grid, 2, 10)
    assert not predict_swap_creates_match(grid, 0, 1)
    assert grid.cells == before


def test_valid_swaps_found_and_absent():
    assert (55, 63) in find_valid_swaps(make_grid())
    assert find_valid_swaps(Grid(cells=stalemate_cells())) == []
