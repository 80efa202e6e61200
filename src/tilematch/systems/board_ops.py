from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Set, Tuple

from tilematch.components.grid import Grid
from tilematch.constants import (
    BOARD_ATTEMPT_WARNING,
    COLORS,
    GRID_COLS,
    GRID_ROWS,
    MAX_CASCADE_DEPTH,
    MIN_RUN,
    POINTS_PER_TILE,
)

logger = logging.getLogger(__name__)

Swap = Tuple[int, int]


class BoardGenerationError(RuntimeError):
    """Raised when a bounded board generation runs out of attempts."""


class CascadeDepthExceeded(RuntimeError):
    """Raised when a cascade keeps producing matches past the configured ceiling."""

    def __init__(self, depth: int, points: int):
        super().__init__(f"Cascade exceeded {depth} iterations ({points} points accumulated)")
        self.depth = depth
        self.points = points


@dataclass(slots=True, frozen=True)
class CascadeStep:
    depth: int
    indices: Tuple[int, ...]
    points: int


@dataclass(slots=True)
class CascadeResult:
    points: int = 0
    steps: List[CascadeStep] = field(default_factory=list)

    @property
    def depth(self) -> int:
        return len(self.steps)


def is_adjacent(grid: Grid, a: int, b: int) -> bool:
    """True when a and b are 4-directional neighbours on the grid."""
    ar, ac = grid.position(a)
    br, bc = grid.position(b)
    return (abs(ar - br) == 1 and ac == bc) or (abs(ac - bc) == 1 and ar == br)


def swap_cells(grid: Grid, a: int, b: int) -> None:
    grid.check_index(a)
    grid.check_index(b)
    grid.cells[a], grid.cells[b] = grid.cells[b], grid.cells[a]


def find_matches(grid: Grid, *, min_run: int = MIN_RUN) -> Set[int]:
    """Return every index covered by a horizontal or vertical run of >= min_run.

    Rows are scanned left to right and columns top to bottom independently;
    overlapping runs (L, T, crosses) collapse into a single set.
    """
    cells = grid.cells
    rows, cols = grid.rows, grid.cols
    matched: Set[int] = set()
    # Horizontal runs
    for r in range(rows):
        start = r * cols
        run_start = start
        for c in range(1, cols + 1):
            idx = start + c
            if c < cols and cells[idx] == cells[run_start]:
                continue
            if idx - run_start >= min_run:
                matched.update(range(run_start, idx))
            run_start = idx
    # Vertical runs
    for c in range(cols):
        run_start_row = 0
        for r in range(1, rows + 1):
            if r < rows and cells[r * cols + c] == cells[run_start_row * cols + c]:
                continue
            if r - run_start_row >= min_run:
                matched.update(row * cols + c for row in range(run_start_row, r))
            run_start_row = r
    return matched


def predict_swap_creates_match(grid: Grid, a: int, b: int) -> bool:
    """Return True if exchanging a and b would leave a non-empty match on the board."""
    probe = grid.copy()
    swap_cells(probe, a, b)
    return bool(find_matches(probe))


def find_valid_swaps(grid: Grid) -> List[Swap]:
    """Enumerate adjacent swaps (right and down neighbours) that would produce a match."""
    swaps: List[Swap] = []
    for row in range(grid.rows):
        for col in range(grid.cols):
            idx = row * grid.cols + col
            if col + 1 < grid.cols and predict_swap_creates_match(grid, idx, idx + 1):
                swaps.append((idx, idx + 1))
            if row + 1 < grid.rows and predict_swap_creates_match(grid, idx, idx + grid.cols):
                swaps.append((idx, idx + grid.cols))
    return swaps


def has_valid_move(grid: Grid) -> bool:
    for row in range(grid.rows):
        for col in range(grid.cols):
            idx = row * grid.cols + col
            if col + 1 < grid.cols and predict_swap_creates_match(grid, idx, idx + 1):
                return True
            if row + 1 < grid.rows and predict_swap_creates_match(grid, idx, idx + grid.cols):
                return True
    return False


def random_grid(
    rng: random.Random,
    *,
    rows: int = GRID_ROWS,
    cols: int = GRID_COLS,
    colors: Sequence[str] = COLORS,
) -> Grid:
    return Grid(cells=[rng.choice(colors) for _ in range(rows * cols)], rows=rows, cols=cols)


def generate_board(
    rng: random.Random | None = None,
    *,
    rows: int = GRID_ROWS,
    cols: int = GRID_COLS,
    colors: Sequence[str] = COLORS,
    max_attempts: int | None = None,
) -> Grid:
    """Sample whole boards until one has no match and at least one valid move.

    Every cell is drawn independently; a failing candidate is discarded in full
    rather than repaired. Unbounded unless max_attempts is given, in which case
    BoardGenerationError is raised once it is exhausted.
    """
    rng = rng or random.Random()
    attempts = 0
    while max_attempts is None or attempts < max_attempts:
        attempts += 1
        candidate = random_grid(rng, rows=rows, cols=cols, colors=colors)
        if not find_matches(candidate) and has_valid_move(candidate):
            logger.debug("Generated %dx%d board after %d attempt(s)", rows, cols, attempts)
            return candidate
        if attempts % BOARD_ATTEMPT_WARNING == 0:
            logger.warning("Board generation still searching after %d attempts", attempts)
    raise BoardGenerationError(f"No playable {rows}x{cols} board within {max_attempts} attempts")


def resolve_cascade(
    grid: Grid,
    matches: Set[int],
    rng: random.Random,
    *,
    colors: Sequence[str] = COLORS,
    points_per_tile: int = POINTS_PER_TILE,
    max_depth: int = MAX_CASCADE_DEPTH,
    on_step: Optional[Callable[[CascadeStep], None]] = None,
) -> CascadeResult:
    """Clear, refill and rescan until the board settles; mutates grid in place.

    Each iteration scores points_per_tile for every matched index, replaces those
    cells with fresh independent draws (ascending index order, so a seeded rng is
    reproducible) and rescans the whole board.
    """
    if not matches:
        raise ValueError("Cascade requires a non-empty initial match")
    result = CascadeResult()
    current = set(matches)
    while current:
        if result.depth >= max_depth:
            raise CascadeDepthExceeded(result.depth, result.points)
        ordered = tuple(sorted(current))
        points = points_per_tile * len(ordered)
        for idx in ordered:
            grid.cells[idx] = rng.choice(colors)
        step = CascadeStep(depth=result.depth + 1, indices=ordered, points=points)
        result.steps.append(step)
        result.points += points
        if on_step is not None:
            on_step(step)
        current = find_matches(grid)
    return result
