from dataclasses import dataclass, field
from typing import List, Tuple

from tilematch.constants import GRID_COLS, GRID_ROWS


@dataclass(slots=True)
class Grid:
    """Row-major board of tile colors; index = row * cols + col.

    Lives on the single board entity and is mutated in place by swaps and cascades.
    """
    cells: List[str] = field(default_factory=list)
    rows: int = GRID_ROWS
    cols: int = GRID_COLS

    def __post_init__(self) -> None:
        if self.cells and len(self.cells) != self.rows * self.cols:
            raise ValueError(
                f"Grid expects {self.rows * self.cols} cells, got {len(self.cells)}"
            )

    @property
    def size(self) -> int:
        return self.rows * self.cols

    def position(self, index: int) -> Tuple[int, int]:
        self.check_index(index)
        return divmod(index, self.cols)

    def index(self, row: int, col: int) -> int:
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            raise ValueError(f"Position {(row, col)} outside {self.rows}x{self.cols} grid")
        return row * self.cols + col

    def check_index(self, index: int) -> None:
        if not 0 <= index < self.size:
            raise ValueError(f"Index {index} outside grid of {self.size} cells")

    def copy(self) -> "Grid":
        return Grid(cells=list(self.cells), rows=self.rows, cols=self.cols)
