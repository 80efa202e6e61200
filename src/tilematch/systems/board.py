import logging
import random
from typing import Optional

from esper import World

from tilematch.components.grid import Grid
from tilematch.constants import COLORS, GRID_COLS, GRID_ROWS, MOVES_PER_SWAP
from tilematch.events.bus import (
    EventBus,
    EVENT_BOARD_RESET,
    EVENT_CASCADE_ABORTED,
    EVENT_CASCADE_COMPLETE,
    EVENT_INPUT_BLOCKED,
    EVENT_TILE_CLICK,
    EVENT_TILE_DESELECTED,
    EVENT_TILE_SELECTED,
    EVENT_TILE_SWAP_FINALIZE,
    EVENT_TILE_SWAP_INVALID,
    EVENT_TILE_SWAP_REQUEST,
)
from tilematch.systems.board_ops import (
    find_matches,
    generate_board,
    has_valid_move,
    is_adjacent,
    swap_cells,
)
from tilematch.systems.session_utils import get_economy_view, get_session_state

logger = logging.getLogger(__name__)


class BoardSystem:
    """Owns the board entity and turns clicks into validated swaps.

    A swap is refused without touching the grid when the session is closed, a
    previous swap is still settling, the local move budget is empty, or the two
    cells are not neighbours. An adjacent swap that produces no match is undone
    in place. Only a matching swap is handed on via EVENT_TILE_SWAP_FINALIZE.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        rows: int = GRID_ROWS,
        cols: int = GRID_COLS,
        *,
        max_attempts: Optional[int] = None,
    ):
        self.world = world
        self.event_bus = event_bus
        self.rows = rows
        self.cols = cols
        self.max_attempts = max_attempts
        self.board_entity = self.world.create_entity(self._generate())
        self.event_bus.subscribe(EVENT_TILE_CLICK, self.on_tile_click)
        self.event_bus.subscribe(EVENT_TILE_SWAP_REQUEST, self.on_swap_request)
        self.event_bus.subscribe(EVENT_CASCADE_COMPLETE, self.on_cascade_complete)
        self.event_bus.subscribe(EVENT_CASCADE_ABORTED, self.on_cascade_aborted)

    @property
    def grid(self) -> Grid:
        return self.world.component_for_entity(self.board_entity, Grid)

    def _rng(self) -> random.Random:
        rng = getattr(self.world, "random", None)
        return rng if isinstance(rng, random.Random) else random.Random()

    def _generate(self) -> Grid:
        return generate_board(
            self._rng(), rows=self.rows, cols=self.cols, colors=COLORS, max_attempts=self.max_attempts
        )

    def regenerate(self, reason: str) -> None:
        """Replace every cell with a fresh playable board (dead-end recovery)."""
        fresh = self._generate()
        self.grid.cells[:] = fresh.cells
        logger.info("Board regenerated (%s)", reason)
        self.event_bus.emit(EVENT_BOARD_RESET, reason=reason)

    def _blocked_reason(self) -> Optional[str]:
        state = get_session_state(self.world)
        if state.closed:
            return 'session_closed'
        if state.swap_in_flight:
            return 'busy'
        if get_economy_view(self.world).moves_remaining < MOVES_PER_SWAP:
            return 'out_of_moves'
        return None

    def on_tile_click(self, sender, **kwargs):
        index = kwargs.get('index')
        if index is None:
            return
        reason = self._blocked_reason()
        if reason is not None:
            self.event_bus.emit(EVENT_INPUT_BLOCKED, index=index, reason=reason)
            return
        state = get_session_state(self.world)
        if state.selected is None:
            state.selected = index
            self.event_bus.emit(EVENT_TILE_SELECTED, index=index)
            return
        src = state.selected
        state.selected = None
        if src == index:
            self.event_bus.emit(EVENT_TILE_DESELECTED, index=index, reason='same_tile')
            return
        self.event_bus.emit(EVENT_TILE_SWAP_REQUEST, src=src, dst=index)

    def on_swap_request(self, sender, **kwargs):
        src = kwargs.get('src')
        dst = kwargs.get('dst')
        if src is None or dst is None:
            return
        reason = self._blocked_reason()
        if reason is None:
            reason = self._validate_geometry(src, dst)
        if reason is not None:
            self.event_bus.emit(EVENT_TILE_SWAP_INVALID, src=src, dst=dst, reason=reason)
            return
        grid = self.grid
        swap_cells(grid, src, dst)
        matches = find_matches(grid)
        if not matches:
            # Exchange back so the board is restored cell for cell.
            swap_cells(grid, src, dst)
            self.event_bus.emit(EVENT_TILE_SWAP_INVALID, src=src, dst=dst, reason='no_match')
            return
        get_session_state(self.world).swap_in_flight = True
        self.event_bus.emit(EVENT_TILE_SWAP_FINALIZE, src=src, dst=dst, matches=sorted(matches))

    def _validate_geometry(self, src: int, dst: int) -> Optional[str]:
        grid = self.grid
        if not (0 <= src < grid.size and 0 <= dst < grid.size):
            return 'out_of_range'
        if not is_adjacent(grid, src, dst):
            return 'not_adjacent'
        return None

    def on_cascade_complete(self, sender, **kwargs):
        if not has_valid_move(self.grid):
            self.regenerate('no_moves')

    def on_cascade_aborted(self, sender, **kwargs):
        self.regenerate('cascade_limit')
